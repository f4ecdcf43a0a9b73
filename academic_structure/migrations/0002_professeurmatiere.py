import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('academic_structure', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ProfesseurMatiere',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('role', models.CharField(choices=[('cours', 'Cours'), ('td', 'Travaux dirigés'), ('tp', 'Travaux pratiques')], default='cours', max_length=10)),
                ('date_creation', models.DateTimeField(default=django.utils.timezone.now)),
                ('matiere', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='affectations', to='academic_structure.matiere')),
                ('professeur', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='affectations', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Affectation professeur',
                'verbose_name_plural': 'Affectations professeurs',
                'ordering': ['matiere', 'role'],
                'unique_together': {('matiere', 'role')},
            },
        ),
    ]
