# academic_structure/models.py
from django.conf import settings
from django.db import models
from django.utils import timezone


class Niveau(models.Model):
    """Niveaux d'études (L1, M2, 3ING...)"""
    TYPE_CHOICES = [
        ('licence', 'Licence'),
        ('master', 'Master'),
        ('ingenieur', 'Ingénieur'),
    ]

    nom = models.CharField(max_length=20, unique=True)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    ordre = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['ordre']
        verbose_name = "Niveau"
        verbose_name_plural = "Niveaux"

    def __str__(self):
        return self.nom


class Filiere(models.Model):
    """Filières rattachées à un niveau"""
    nom = models.CharField(max_length=100)
    code = models.CharField(max_length=20, unique=True)
    niveau = models.ForeignKey(Niveau, on_delete=models.CASCADE, related_name='filieres')
    is_deleted = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(null=True, blank=True)
    date_creation = models.DateTimeField(default=timezone.now)
    date_modification = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['niveau__ordre', 'nom']
        verbose_name = "Filière"
        verbose_name_plural = "Filières"

    def __str__(self):
        return f"{self.nom} ({self.code})"


class Semestre(models.Model):
    nom = models.CharField(max_length=20)
    niveau = models.ForeignKey(Niveau, on_delete=models.CASCADE, related_name='semestres')
    ordre = models.PositiveIntegerField()

    class Meta:
        ordering = ['niveau__ordre', 'ordre']
        unique_together = ['niveau', 'ordre']

    def __str__(self):
        return f"{self.nom} - {self.niveau.nom}"


class Matiere(models.Model):
    """Matières d'une filière pour un semestre"""
    nom = models.CharField(max_length=100)
    code = models.CharField(max_length=20)
    filiere = models.ForeignKey(Filiere, on_delete=models.CASCADE, related_name='matieres')
    semestre = models.ForeignKey(Semestre, on_delete=models.CASCADE, related_name='matieres')
    is_deleted = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(null=True, blank=True)
    date_creation = models.DateTimeField(default=timezone.now)
    date_modification = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['semestre__ordre', 'nom']
        unique_together = ['code', 'filiere']

    def __str__(self):
        return f"{self.nom} - {self.filiere.code}"


class ProfesseurMatiere(models.Model):
    """Affectation d'un professeur à une matière pour un rôle (cours, TD, TP)"""
    ROLE_CHOICES = [
        ('cours', 'Cours'),
        ('td', 'Travaux dirigés'),
        ('tp', 'Travaux pratiques'),
    ]

    professeur = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='affectations'
    )
    matiere = models.ForeignKey(Matiere, on_delete=models.CASCADE, related_name='affectations')
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default='cours')
    date_creation = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['matiere', 'role']
        unique_together = ['matiere', 'role']
        verbose_name = "Affectation professeur"
        verbose_name_plural = "Affectations professeurs"

    def __str__(self):
        return f"{self.professeur} - {self.matiere.code} ({self.role})"
