# documents/services.py
import logging
from pathlib import Path

from django.core.cache import cache
from django.db import transaction
from django.db.models import F, Q
from rest_framework import status

from academic_structure.models import ProfesseurMatiere
from isi_archive.exceptions import ErreurMetier
from .models import Document, DocumentMatiere, DocumentPFE
from . import stockage

logger = logging.getLogger(__name__)

# Niveaux terminaux dont les étudiants consultent les PFE
NIVEAUX_PFE = ('L3', '3ING', 'M2')
DELAI_VUE_SECONDES = 5


def peut_voir_pfe(utilisateur):
    if utilisateur.role in ('admin', 'professeur'):
        return True
    return bool(utilisateur.niveau_id and utilisateur.niveau.nom in NIVEAUX_PFE)


def matieres_du_document(document):
    matieres = list(document.matieres.select_related('filiere'))
    if not matieres and document.matiere_id:
        matieres = [document.matiere]
    return matieres


def peut_acceder_document(utilisateur, document):
    if utilisateur.role == 'admin':
        return True
    if document.telecharge_par_id == utilisateur.pk:
        return True
    if document.est_pfe:
        return peut_voir_pfe(utilisateur)

    matieres = matieres_du_document(document)
    if utilisateur.role == 'professeur':
        return ProfesseurMatiere.objects.filter(professeur=utilisateur, matiere__in=matieres).exists()
    if utilisateur.role == 'etudiant':
        return any(
            m.filiere_id == utilisateur.filiere_id and m.filiere.niveau_id == utilisateur.niveau_id
            for m in matieres
        )
    return False


def verifier_acces_document(utilisateur, document):
    if not peut_acceder_document(utilisateur, document):
        logger.warning(f"Accès refusé au document {document.pk} pour {utilisateur.email}")
        raise ErreurMetier("Vous n'avez pas accès à ce document", status_code=status.HTTP_403_FORBIDDEN)


def documents_visibles(utilisateur):
    """Documents actifs (hors corrections) visibles par l'utilisateur selon son rôle"""
    queryset = Document.objects.filter(is_deleted=False, correction_de__isnull=True)

    if utilisateur.role == 'admin':
        return queryset

    if utilisateur.role == 'professeur':
        acces = (
            Q(matieres__affectations__professeur=utilisateur)
            | Q(matiere__affectations__professeur=utilisateur)
            | Q(categorie='pfe')
            | Q(telecharge_par=utilisateur)
        )
        return queryset.filter(acces).distinct()

    acces = (
        Q(matieres__filiere_id=utilisateur.filiere_id, matieres__filiere__niveau_id=utilisateur.niveau_id)
        | Q(matiere__filiere_id=utilisateur.filiere_id, matiere__filiere__niveau_id=utilisateur.niveau_id)
    )
    if peut_voir_pfe(utilisateur):
        acces |= Q(categorie='pfe')
    return queryset.filter(acces).distinct()


def enregistrer_vue(utilisateur, document):
    """Incrémente le compteur de vues, au plus une fois toutes les 5 secondes par utilisateur"""
    cle = f"vue_document:{document.pk}:{utilisateur.pk}"
    if not cache.add(cle, True, timeout=DELAI_VUE_SECONDES):
        return False
    Document.objects.filter(pk=document.pk).update(view_count=F('view_count') + 1)
    return True


def enregistrer_telechargement(document):
    Document.objects.filter(pk=document.pk).update(download_count=F('download_count') + 1)


def verifier_affectations(utilisateur, matieres):
    """Un professeur ne dépose que dans les matières qui lui sont affectées"""
    if utilisateur.role != 'professeur':
        return
    affectees = set(
        ProfesseurMatiere.objects.filter(professeur=utilisateur, matiere__in=matieres)
        .values_list('matiere_id', flat=True)
    )
    for matiere in matieres:
        if matiere.pk not in affectees:
            raise ErreurMetier(
                f"Vous n'êtes pas affecté à la matière {matiere.nom}",
                status_code=status.HTTP_403_FORBIDDEN,
            )


def emplacement_par_defaut(matiere):
    """Métadonnées de rangement déduites d'une matière"""
    return {
        'niveau': matiere.filiere.niveau.nom,
        'filiere': matiere.filiere.code,
        'semestre': matiere.semestre.nom,
        'matiere': matiere.code,
    }


def deposer_document(utilisateur, fichier, donnees, matieres, emplacement, pfe=None):
    """Enregistre le fichier, le range dans l'arborescence et crée le document.

    En cas d'erreur, le fichier temporaire ou déjà déplacé est supprimé.
    """
    stockage.valider_fichier(fichier)
    chemin_temporaire = stockage.enregistrer_temporaire(fichier)
    chemin_final = None
    try:
        dossier = stockage.dossier_destination(
            emplacement.get('niveau'), emplacement.get('filiere'), emplacement.get('semestre'),
            donnees['categorie'], emplacement.get('matiere'),
        )
        chemin_final = stockage.deplacer(chemin_temporaire, dossier)

        with transaction.atomic():
            document = Document.objects.create(
                titre=donnees['titre'],
                description=donnees.get('description', ''),
                categorie=donnees['categorie'],
                nom_fichier=fichier.name,
                chemin_fichier=chemin_final,
                taille_fichier=fichier.size,
                type_mime=fichier.content_type,
                matiere=matieres[0] if matieres else None,
                telecharge_par=utilisateur,
            )
            DocumentMatiere.objects.bulk_create(
                [DocumentMatiere(document=document, matiere=m) for m in matieres]
            )
            if pfe is not None:
                DocumentPFE.objects.create(document=document, **pfe)
    except Exception:
        stockage.supprimer_fichier(chemin_temporaire)
        if chemin_final:
            stockage.supprimer_fichier(chemin_final)
        raise

    logger.info(f"Document {document.pk} déposé par {utilisateur.email} dans {chemin_final}")
    return document


def deposer_correction(utilisateur, parent, fichier):
    """Correction d'un document : rangée dans le sous-dossier 'corrections' du parent"""
    if parent.is_deleted:
        raise ErreurMetier('Document parent non trouvé', status_code=status.HTTP_404_NOT_FOUND)
    if parent.correction_de_id:
        raise ErreurMetier("Impossible d'ajouter une correction à une correction")
    verifier_acces_document(utilisateur, parent)
    if parent.corrections.filter(is_deleted=False).exists():
        raise ErreurMetier('Une correction existe déjà pour ce document')

    stockage.valider_fichier(fichier)
    chemin_temporaire = stockage.enregistrer_temporaire(fichier)
    chemin_final = None
    try:
        dossier = Path(parent.chemin_fichier).parent / 'corrections'
        chemin_final = stockage.deplacer(chemin_temporaire, dossier)
        matieres = matieres_du_document(parent)
        with transaction.atomic():
            correction = Document.objects.create(
                titre=f"Correction - {parent.titre}",
                description=f"Correction du document: {parent.titre}",
                categorie=parent.categorie,
                nom_fichier=fichier.name,
                chemin_fichier=chemin_final,
                taille_fichier=fichier.size,
                type_mime=fichier.content_type,
                matiere=parent.matiere,
                telecharge_par=utilisateur,
                correction_de=parent,
            )
            DocumentMatiere.objects.bulk_create(
                [DocumentMatiere(document=correction, matiere=m) for m in matieres]
            )
    except Exception:
        stockage.supprimer_fichier(chemin_temporaire)
        if chemin_final:
            stockage.supprimer_fichier(chemin_final)
        raise

    logger.info(f"Correction {correction.pk} ajoutée au document {parent.pk} par {utilisateur.email}")
    return correction


def supprimer_definitivement(document):
    """Supprime le document, ses corrections et les fichiers associés"""
    chemins = [document.chemin_fichier] + list(document.corrections.values_list('chemin_fichier', flat=True))
    document.delete()
    for chemin in chemins:
        stockage.supprimer_fichier(chemin)
    logger.info(f"Document {document.titre} supprimé définitivement ({len(chemins)} fichier(s))")
    return len(chemins)
