import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('academic_structure', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Document',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('titre', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True, default='')),
                ('categorie', models.CharField(choices=[('cours', 'Cours'), ('td', 'Travaux dirigés'), ('tp', 'Travaux pratiques'), ('examen', 'Examen'), ('pfe', "Projet de fin d'études")], max_length=10)),
                ('nom_fichier', models.CharField(max_length=255)),
                ('chemin_fichier', models.CharField(max_length=500)),
                ('taille_fichier', models.BigIntegerField()),
                ('type_mime', models.CharField(max_length=100)),
                ('download_count', models.PositiveIntegerField(default=0)),
                ('view_count', models.PositiveIntegerField(default=0)),
                ('is_deleted', models.BooleanField(default=False)),
                ('deleted_at', models.DateTimeField(blank=True, null=True)),
                ('date_creation', models.DateTimeField(default=django.utils.timezone.now)),
                ('date_modification', models.DateTimeField(auto_now=True)),
                ('correction_de', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='corrections', to='documents.document')),
                ('deleted_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='documents_supprimes', to=settings.AUTH_USER_MODEL)),
                ('matiere', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='documents_principaux', to='academic_structure.matiere')),
                ('telecharge_par', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='documents', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-date_creation'],
                'indexes': [
                    models.Index(fields=['is_deleted', 'categorie'], name='document_supp_categorie_idx'),
                    models.Index(fields=['is_deleted', 'deleted_at'], name='document_supp_date_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='DocumentMatiere',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('document', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='liens_matieres', to='documents.document')),
                ('matiere', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='liens_documents', to='academic_structure.matiere')),
            ],
            options={
                'unique_together': {('document', 'matiere')},
            },
        ),
        migrations.AddField(
            model_name='document',
            name='matieres',
            field=models.ManyToManyField(blank=True, related_name='documents', through='documents.DocumentMatiere', to='academic_structure.matiere'),
        ),
        migrations.CreateModel(
            name='DocumentPFE',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('annee_diplome', models.PositiveIntegerField()),
                ('filiere_diplome', models.CharField(max_length=100)),
                ('titre_projet', models.CharField(max_length=300)),
                ('resume', models.TextField(max_length=2000)),
                ('mots_cles', models.JSONField(blank=True, default=list)),
                ('document', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='pfe', to='documents.document')),
            ],
            options={
                'verbose_name': 'Document PFE',
                'verbose_name_plural': 'Documents PFE',
                'ordering': ['-annee_diplome'],
            },
        ),
    ]
