# commentaires/models.py
from django.conf import settings
from django.db import models
from django.utils import timezone


class Commentaire(models.Model):
    """Commentaire d'un document, avec un seul niveau de réponses"""
    contenu = models.TextField(max_length=2000)
    document = models.ForeignKey('documents.Document', on_delete=models.CASCADE, related_name='commentaires')
    auteur = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='commentaires')
    parent = models.ForeignKey(
        'self', on_delete=models.CASCADE, null=True, blank=True, related_name='reponses'
    )

    is_edited = models.BooleanField(default=False)
    is_deleted = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(null=True, blank=True)
    deleted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='commentaires_supprimes'
    )

    date_creation = models.DateTimeField(default=timezone.now)
    date_modification = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-date_creation']
        indexes = [
            models.Index(fields=['document', 'parent', 'is_deleted'], name='commentaire_fil_idx'),
        ]

    def __str__(self):
        return f"{self.auteur} sur {self.document_id}: {self.contenu[:30]}"
