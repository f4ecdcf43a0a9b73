from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin, BaseUserManager
from django.db import models
from django.utils import timezone


class UtilisateurManager(BaseUserManager):
    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError('L\'email doit être défini')
        email = self.normalize_email(email).lower()
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', False)
        extra_fields.setdefault('is_superuser', False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', 'admin')
        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')
        return self._create_user(email, password, **extra_fields)


class Utilisateur(AbstractBaseUser, PermissionsMixin):
    """Étudiants, professeurs et administrateurs de l'ISI"""
    ROLE_CHOICES = [
        ('etudiant', 'Étudiant'),
        ('professeur', 'Professeur'),
        ('admin', 'Administrateur'),
    ]

    email = models.EmailField(unique=True)
    prenom = models.CharField(max_length=50)
    nom = models.CharField(max_length=50)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='etudiant')

    # Rattachement académique (obligatoire pour les étudiants)
    filiere = models.ForeignKey(
        'academic_structure.Filiere', on_delete=models.SET_NULL, null=True, blank=True, related_name='utilisateurs'
    )
    niveau = models.ForeignKey(
        'academic_structure.Niveau', on_delete=models.SET_NULL, null=True, blank=True, related_name='utilisateurs'
    )

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    # Réinitialisation du mot de passe
    reset_token = models.CharField(max_length=64, blank=True, null=True)
    reset_token_expiry = models.DateTimeField(blank=True, null=True)

    # Incrémenté à chaque déconnexion globale : invalide les refresh tokens émis
    token_version = models.PositiveIntegerField(default=0)

    date_creation = models.DateTimeField(default=timezone.now)
    date_modification = models.DateTimeField(auto_now=True)

    objects = UtilisateurManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['prenom', 'nom']

    class Meta:
        ordering = ['-date_creation']
        verbose_name = "Utilisateur"
        verbose_name_plural = "Utilisateurs"

    def __str__(self):
        return self.email

    @property
    def est_admin(self):
        return self.role == 'admin'

    @property
    def est_professeur(self):
        return self.role == 'professeur'

    @property
    def est_etudiant(self):
        return self.role == 'etudiant'

    def get_full_name(self):
        """Retourne le nom complet de l'utilisateur"""
        return f"{self.prenom} {self.nom}".strip()

    def get_short_name(self):
        return self.prenom

    def invalider_tokens(self):
        """Révoque tous les refresh tokens en circulation"""
        self.token_version += 1
        self.save(update_fields=['token_version', 'date_modification'])
