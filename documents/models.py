# documents/models.py
from django.conf import settings
from django.db import models
from django.utils import timezone


class Document(models.Model):
    """Document académique déposé sur la plateforme"""
    CATEGORIE_CHOICES = [
        ('cours', 'Cours'),
        ('td', 'Travaux dirigés'),
        ('tp', 'Travaux pratiques'),
        ('examen', 'Examen'),
        ('pfe', 'Projet de fin d\'études'),
    ]

    titre = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    categorie = models.CharField(max_length=10, choices=CATEGORIE_CHOICES)

    # Fichier stocké sur disque (chemin relatif à UPLOAD_PATH)
    nom_fichier = models.CharField(max_length=255)
    chemin_fichier = models.CharField(max_length=500)
    taille_fichier = models.BigIntegerField()
    type_mime = models.CharField(max_length=100)

    # Matière principale, conservée pour les anciens documents
    matiere = models.ForeignKey(
        'academic_structure.Matiere', on_delete=models.SET_NULL, null=True, blank=True,
        related_name='documents_principaux'
    )
    matieres = models.ManyToManyField(
        'academic_structure.Matiere', through='DocumentMatiere', related_name='documents', blank=True
    )
    telecharge_par = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='documents'
    )
    # Une correction pointe vers le document corrigé
    correction_de = models.ForeignKey(
        'self', on_delete=models.CASCADE, null=True, blank=True, related_name='corrections'
    )

    download_count = models.PositiveIntegerField(default=0)
    view_count = models.PositiveIntegerField(default=0)

    is_deleted = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(null=True, blank=True)
    deleted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='documents_supprimes'
    )

    date_creation = models.DateTimeField(default=timezone.now)
    date_modification = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-date_creation']
        indexes = [
            models.Index(fields=['is_deleted', 'categorie'], name='document_supp_categorie_idx'),
            models.Index(fields=['is_deleted', 'deleted_at'], name='document_supp_date_idx'),
        ]

    def __str__(self):
        return self.titre

    @property
    def est_pfe(self):
        return self.categorie == 'pfe'

    def correction_active(self):
        return self.corrections.filter(is_deleted=False).first()


class DocumentMatiere(models.Model):
    document = models.ForeignKey(Document, on_delete=models.CASCADE, related_name='liens_matieres')
    matiere = models.ForeignKey('academic_structure.Matiere', on_delete=models.CASCADE, related_name='liens_documents')

    class Meta:
        unique_together = ['document', 'matiere']

    def __str__(self):
        return f"{self.document_id} - {self.matiere_id}"


class DocumentPFE(models.Model):
    """Métadonnées d'un mémoire de PFE"""
    document = models.OneToOneField(Document, on_delete=models.CASCADE, related_name='pfe')
    annee_diplome = models.PositiveIntegerField()
    filiere_diplome = models.CharField(max_length=100)
    titre_projet = models.CharField(max_length=300)
    resume = models.TextField(max_length=2000)
    mots_cles = models.JSONField(default=list, blank=True)

    class Meta:
        ordering = ['-annee_diplome']
        verbose_name = "Document PFE"
        verbose_name_plural = "Documents PFE"

    def __str__(self):
        return f"{self.titre_projet} ({self.annee_diplome})"
