# commentaires/services.py
"""
Règles de modération et de réponse des commentaires.

Les professeurs et administrateurs répondent librement. Un étudiant ne répond
jamais à un autre étudiant, et doit attendre une réponse d'un professeur (ou
d'un administrateur) avant de répondre une seconde fois dans un même fil.
"""
import logging

from django.db import transaction
from django.utils import timezone
from rest_framework import status

from academic_structure.models import ProfesseurMatiere
from documents.services import matieres_du_document
from isi_archive.exceptions import ErreurMetier
from .models import Commentaire

logger = logging.getLogger(__name__)

RAISON_ETUDIANT = "Les étudiants ne peuvent pas répondre aux commentaires d'autres étudiants"
RAISON_ATTENTE = "Vous devez attendre la réponse d'un professeur avant de répondre à nouveau"


def peut_moderer(utilisateur, document):
    if utilisateur.role == 'admin':
        return True
    if utilisateur.role != 'professeur':
        return False
    if document.est_pfe:
        return True
    return ProfesseurMatiere.objects.filter(
        professeur=utilisateur, matiere__in=matieres_du_document(document)
    ).exists()


def peut_repondre(utilisateur, commentaire):
    """Retourne (autorisé, raison) pour une réponse au fil du commentaire"""
    if utilisateur.role in ('professeur', 'admin'):
        return True, None

    if commentaire.auteur.role == 'etudiant' and commentaire.auteur_id != utilisateur.pk:
        return False, RAISON_ETUDIANT

    fil = commentaire.parent or commentaire
    reponses = fil.reponses.filter(is_deleted=False)
    derniere = reponses.filter(auteur=utilisateur).order_by('-date_creation').first()
    if derniere is None:
        return True, None
    reponse_enseignant = reponses.filter(
        auteur__role__in=('professeur', 'admin'), date_creation__gt=derniere.date_creation
    ).exists()
    if not reponse_enseignant:
        return False, RAISON_ATTENTE
    return True, None


def creer_commentaire(utilisateur, document, contenu, parent=None):
    if parent is not None:
        if parent.document_id != document.pk or parent.is_deleted:
            raise ErreurMetier('Commentaire parent non trouvé', status_code=status.HTTP_404_NOT_FOUND)
        autorise, raison = peut_repondre(utilisateur, parent)
        if not autorise:
            raise ErreurMetier(raison, status_code=status.HTTP_403_FORBIDDEN)
        # Un seul niveau : la réponse est rattachée au commentaire racine
        if parent.parent_id:
            parent = parent.parent

    commentaire = Commentaire.objects.create(
        contenu=contenu, document=document, auteur=utilisateur, parent=parent
    )
    logger.info(f"Commentaire {commentaire.pk} ajouté au document {document.pk} par {utilisateur.email}")
    return commentaire


@transaction.atomic
def supprimer_commentaire(commentaire, utilisateur):
    """Suppression logique du commentaire et de ses réponses directes"""
    maintenant = timezone.now()
    nombre = commentaire.reponses.filter(is_deleted=False).update(
        is_deleted=True, deleted_at=maintenant, deleted_by=utilisateur
    )
    commentaire.is_deleted = True
    commentaire.deleted_at = maintenant
    commentaire.deleted_by = utilisateur
    commentaire.save(update_fields=['is_deleted', 'deleted_at', 'deleted_by', 'date_modification'])
    return nombre
