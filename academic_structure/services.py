# academic_structure/services.py
import logging

from django.db import transaction
from django.utils import timezone
from rest_framework import status

from isi_archive.exceptions import ErreurMetier
from .models import Matiere, ProfesseurMatiere

logger = logging.getLogger(__name__)


def peut_acceder_matiere(utilisateur, matiere):
    """Admin : toujours. Professeur : s'il y est affecté. Étudiant : si la matière est dans sa filière et son niveau."""
    if utilisateur.role == 'admin':
        return True
    if utilisateur.role == 'professeur':
        return ProfesseurMatiere.objects.filter(professeur=utilisateur, matiere=matiere).exists()
    if utilisateur.role == 'etudiant':
        return (
            matiere.filiere_id == utilisateur.filiere_id
            and matiere.filiere.niveau_id == utilisateur.niveau_id
        )
    return False


def matieres_du_professeur(professeur):
    return Matiere.objects.filter(affectations__professeur=professeur, is_deleted=False).distinct()


@transaction.atomic
def supprimer_filiere(filiere):
    """Suppression logique d'une filière et de ses matières"""
    if filiere.utilisateurs.filter(is_active=True).exists():
        raise ErreurMetier(
            'Impossible de supprimer une filière à laquelle des utilisateurs actifs sont rattachés',
            erreur='Filière utilisée',
        )
    maintenant = timezone.now()
    nombre = filiere.matieres.filter(is_deleted=False).update(is_deleted=True, deleted_at=maintenant)
    filiere.is_deleted = True
    filiere.deleted_at = maintenant
    filiere.save(update_fields=['is_deleted', 'deleted_at', 'date_modification'])
    logger.info(f"Filière {filiere.code} supprimée avec {nombre} matière(s)")
    return nombre


@transaction.atomic
def restaurer_filiere(filiere):
    """Restaure la filière et les matières supprimées en même temps qu'elle"""
    if not filiere.is_deleted:
        raise ErreurMetier("Cette filière n'est pas supprimée")
    nombre = filiere.matieres.filter(is_deleted=True, deleted_at=filiere.deleted_at).update(
        is_deleted=False, deleted_at=None
    )
    filiere.is_deleted = False
    filiere.deleted_at = None
    filiere.save(update_fields=['is_deleted', 'deleted_at', 'date_modification'])
    logger.info(f"Filière {filiere.code} restaurée avec {nombre} matière(s)")
    return nombre


@transaction.atomic
def supprimer_matiere(matiere):
    if matiere.documents.filter(is_deleted=False).exists():
        raise ErreurMetier(
            'Impossible de supprimer une matière contenant des documents',
            erreur='Matière utilisée',
        )
    matiere.affectations.all().delete()
    matiere.is_deleted = True
    matiere.deleted_at = timezone.now()
    matiere.save(update_fields=['is_deleted', 'deleted_at', 'date_modification'])
    logger.info(f"Matière {matiere.code} supprimée")


def restaurer_matiere(matiere):
    if not matiere.is_deleted:
        raise ErreurMetier("Cette matière n'est pas supprimée")
    if matiere.filiere.is_deleted:
        raise ErreurMetier("Restaurez d'abord la filière de cette matière")
    if Matiere.objects.filter(code__iexact=matiere.code, filiere=matiere.filiere, is_deleted=False).exclude(pk=matiere.pk).exists():
        raise ErreurMetier('Une matière active utilise déjà ce code dans cette filière')
    matiere.is_deleted = False
    matiere.deleted_at = None
    matiere.save(update_fields=['is_deleted', 'deleted_at', 'date_modification'])
    logger.info(f"Matière {matiere.code} restaurée")


def affecter_matiere(professeur, matiere, role):
    if professeur.role != 'professeur':
        raise ErreurMetier("L'utilisateur n'est pas un professeur")
    existante = ProfesseurMatiere.objects.filter(matiere=matiere, role=role).select_related('professeur').first()
    if existante is not None:
        if existante.professeur_id == professeur.pk:
            raise ErreurMetier('Ce professeur est déjà affecté à cette matière pour ce rôle')
        raise ErreurMetier(
            f"Le rôle {role} de cette matière est déjà attribué à {existante.professeur.get_full_name()}"
        )
    affectation = ProfesseurMatiere.objects.create(professeur=professeur, matiere=matiere, role=role)
    logger.info(f"Professeur {professeur.email} affecté à {matiere.code} ({role})")
    return affectation


def retirer_matiere(professeur, matiere, role=None):
    affectations = ProfesseurMatiere.objects.filter(professeur=professeur, matiere=matiere)
    if role:
        affectations = affectations.filter(role=role)
    nombre, _ = affectations.delete()
    if not nombre:
        raise ErreurMetier('Affectation non trouvée', status_code=status.HTTP_404_NOT_FOUND)
    return nombre


@transaction.atomic
def remplacer_professeurs(matiere, affectations):
    """Remplace toutes les affectations d'une matière.

    ``affectations`` est une liste de ``{'professeur': Utilisateur, 'roles': [...]}``.
    """
    matiere.affectations.all().delete()
    creees = []
    for affectation in affectations:
        for role in affectation['roles']:
            creees.append(ProfesseurMatiere(professeur=affectation['professeur'], matiere=matiere, role=role))
    ProfesseurMatiere.objects.bulk_create(creees)
    logger.info(f"Professeurs de la matière {matiere.code} mis à jour ({len(creees)} affectation(s))")
    return creees


def grouper_affectations(affectations, cle):
    """Regroupe des affectations par matière ou par professeur avec la liste des rôles"""
    groupes = {}
    for affectation in affectations:
        objet = getattr(affectation, cle)
        if objet.pk not in groupes:
            groupes[objet.pk] = {'objet': objet, 'roles': []}
        groupes[objet.pk]['roles'].append(affectation.role)
    return list(groupes.values())
