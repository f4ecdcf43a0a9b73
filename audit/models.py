# audit/models.py
from django.conf import settings
from django.db import models
from django.utils import timezone


class AuditLog(models.Model):
    """Journal des actions effectuées sur la plateforme"""
    ACTION_CHOICES = [
        ('LOGIN', 'Connexion'),
        ('LOGOUT', 'Déconnexion'),
        ('DOCUMENT_UPLOAD', 'Dépôt de document'),
        ('DOCUMENT_VIEW', 'Consultation de document'),
        ('DOCUMENT_DOWNLOAD', 'Téléchargement de document'),
        ('DOCUMENT_UPDATE', 'Modification de document'),
        ('DOCUMENT_DELETE', 'Suppression de document'),
        ('DOCUMENT_RESTORE', 'Restauration de document'),
        ('COMMENT_CREATE', 'Création de commentaire'),
        ('COMMENT_UPDATE', 'Modification de commentaire'),
        ('COMMENT_DELETE', 'Suppression de commentaire'),
        ('USER_CREATE', "Création d'utilisateur"),
        ('USER_UPDATE', "Modification d'utilisateur"),
        ('USER_DELETE', "Suppression d'utilisateur"),
        ('FILIERE_CREATE', 'Création de filière'),
        ('FILIERE_UPDATE', 'Modification de filière'),
        ('FILIERE_DELETE', 'Suppression de filière'),
        ('FILIERE_RESTORE', 'Restauration de filière'),
        ('MATIERE_CREATE', 'Création de matière'),
        ('MATIERE_UPDATE', 'Modification de matière'),
        ('MATIERE_DELETE', 'Suppression de matière'),
        ('MATIERE_RESTORE', 'Restauration de matière'),
        ('PAGE_ACCESS', 'Accès à une page'),
    ]

    utilisateur = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='journaux'
    )
    action = models.CharField(max_length=30, choices=ACTION_CHOICES)
    ressource = models.CharField(max_length=50)
    ressource_id = models.CharField(max_length=64, blank=True, null=True)
    details = models.JSONField(default=dict, blank=True)
    adresse_ip = models.GenericIPAddressField(blank=True, null=True)
    user_agent = models.TextField(blank=True, null=True)
    date_creation = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ['-date_creation']
        indexes = [
            models.Index(fields=['action', 'date_creation'], name='audit_action_date_idx'),
            models.Index(fields=['ressource', 'ressource_id'], name='audit_ressource_idx'),
        ]
        verbose_name = "Journal d'audit"
        verbose_name_plural = "Journaux d'audit"

    def __str__(self):
        return f"{self.action} - {self.utilisateur or 'anonyme'} - {self.date_creation:%Y-%m-%d %H:%M}"
