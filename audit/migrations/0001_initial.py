import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='AuditLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(choices=[('LOGIN', 'Connexion'), ('LOGOUT', 'Déconnexion'), ('DOCUMENT_UPLOAD', 'Dépôt de document'), ('DOCUMENT_VIEW', 'Consultation de document'), ('DOCUMENT_DOWNLOAD', 'Téléchargement de document'), ('DOCUMENT_UPDATE', 'Modification de document'), ('DOCUMENT_DELETE', 'Suppression de document'), ('DOCUMENT_RESTORE', 'Restauration de document'), ('COMMENT_CREATE', 'Création de commentaire'), ('COMMENT_UPDATE', 'Modification de commentaire'), ('COMMENT_DELETE', 'Suppression de commentaire'), ('USER_CREATE', "Création d'utilisateur"), ('USER_UPDATE', "Modification d'utilisateur"), ('USER_DELETE', "Suppression d'utilisateur"), ('FILIERE_CREATE', 'Création de filière'), ('FILIERE_UPDATE', 'Modification de filière'), ('FILIERE_DELETE', 'Suppression de filière'), ('FILIERE_RESTORE', 'Restauration de filière'), ('MATIERE_CREATE', 'Création de matière'), ('MATIERE_UPDATE', 'Modification de matière'), ('MATIERE_DELETE', 'Suppression de matière'), ('MATIERE_RESTORE', 'Restauration de matière'), ('PAGE_ACCESS', 'Accès à une page')], max_length=30)),
                ('ressource', models.CharField(max_length=50)),
                ('ressource_id', models.CharField(blank=True, max_length=64, null=True)),
                ('details', models.JSONField(blank=True, default=dict)),
                ('adresse_ip', models.GenericIPAddressField(blank=True, null=True)),
                ('user_agent', models.TextField(blank=True, null=True)),
                ('date_creation', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('utilisateur', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='journaux', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': "Journal d'audit",
                'verbose_name_plural': "Journaux d'audit",
                'ordering': ['-date_creation'],
                'indexes': [
                    models.Index(fields=['action', 'date_creation'], name='audit_action_date_idx'),
                    models.Index(fields=['ressource', 'ressource_id'], name='audit_ressource_idx'),
                ],
            },
        ),
    ]
