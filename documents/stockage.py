# documents/stockage.py
"""
Stockage des fichiers déposés sur le disque.

Le fichier reçu est d'abord écrit dans ``UPLOAD_PATH/temp`` puis déplacé dans
l'arborescence ``documents/{niveau}/{filiere}/{semestre}/{matiere}/{categorie}``
(``documents/{niveau}/{filiere}/{semestre}/pfe`` pour les PFE). Les chemins
enregistrés en base sont relatifs à ``UPLOAD_PATH``.
"""
import logging
import os
import re
import secrets
import shutil
import time
from pathlib import Path

from django.conf import settings

from isi_archive.exceptions import ErreurMetier

logger = logging.getLogger(__name__)

CHAMP_FICHIER = 'document'
CARACTERES_INTERDITS = re.compile(r'[^a-zA-Z0-9\-_]')


def nettoyer_segment(valeur):
    return CARACTERES_INTERDITS.sub('_', str(valeur).strip())


def generer_nom_unique(nom_original):
    """{horodatage}_{nom nettoyé tronqué à 50}_{16 hex}{extension}"""
    racine, extension = os.path.splitext(os.path.basename(nom_original))
    horodatage = int(time.time() * 1000)
    return f"{horodatage}_{nettoyer_segment(racine)[:50]}_{secrets.token_hex(8)}{extension.lower()}"


def taille_max_mb():
    return settings.MAX_FILE_SIZE // (1024 * 1024)


def extraire_fichier(request):
    """Récupère l'unique fichier du champ 'document' de la requête multipart"""
    champs = set(request.FILES.keys())
    if champs - {CHAMP_FICHIER}:
        raise ErreurMetier("Champ de fichier inattendu. Utilisez 'document'", erreur='Upload Error')
    fichiers = request.FILES.getlist(CHAMP_FICHIER)
    if len(fichiers) > 1:
        raise ErreurMetier('Trop de fichiers. Un seul fichier autorisé', erreur='Upload Error')
    if not fichiers:
        raise ErreurMetier('Aucun fichier fourni', erreur='Upload Error')
    return fichiers[0]


def valider_fichier(fichier):
    if fichier.size > settings.MAX_FILE_SIZE:
        raise ErreurMetier(
            f"Fichier trop volumineux. Taille maximale: {taille_max_mb()}MB", erreur='Upload Error'
        )
    extension = os.path.splitext(fichier.name)[1].lower()
    if extension not in settings.ALLOWED_FILE_EXTENSIONS:
        raise ErreurMetier(
            f"Extension de fichier non autorisée: {extension or 'aucune'}. "
            f"Extensions acceptées: {', '.join(settings.ALLOWED_FILE_EXTENSIONS)}",
            erreur='Upload Error',
        )
    if fichier.content_type not in settings.ALLOWED_MIME_TYPES:
        raise ErreurMetier(
            f"Type de fichier non autorisé: {fichier.content_type}. Seuls les fichiers PDF, Word et PowerPoint sont acceptés",
            erreur='Upload Error',
        )


def enregistrer_temporaire(fichier):
    """Écrit le fichier reçu dans le dossier temporaire et retourne son chemin absolu"""
    dossier = Path(settings.UPLOAD_PATH) / 'temp'
    dossier.mkdir(parents=True, exist_ok=True)
    chemin = dossier / generer_nom_unique(fichier.name)
    with open(chemin, 'wb') as destination:
        for morceau in fichier.chunks():
            destination.write(morceau)
    return chemin


def dossier_destination(niveau, filiere, semestre, categorie, matiere=None):
    """Dossier relatif de rangement d'un document selon ses métadonnées académiques"""
    if not niveau or not filiere or not semestre:
        raise ErreurMetier('Niveau, filière et semestre sont requis', erreur='Upload Error')
    base = Path('documents', nettoyer_segment(niveau), nettoyer_segment(filiere), nettoyer_segment(semestre))
    if categorie == 'pfe':
        return base / 'pfe'
    if not matiere or not categorie:
        raise ErreurMetier('Matière et catégorie sont requises pour les documents non-PFE', erreur='Upload Error')
    return base / nettoyer_segment(matiere) / nettoyer_segment(categorie)


def deplacer(chemin_temporaire, dossier_relatif):
    """Déplace le fichier temporaire et retourne son chemin relatif à UPLOAD_PATH"""
    dossier = Path(settings.UPLOAD_PATH) / dossier_relatif
    dossier.mkdir(parents=True, exist_ok=True)
    shutil.move(str(chemin_temporaire), str(dossier / chemin_temporaire.name))
    return (Path(dossier_relatif) / chemin_temporaire.name).as_posix()


def chemin_absolu(chemin_relatif):
    return Path(settings.UPLOAD_PATH) / chemin_relatif


def supprimer_fichier(chemin):
    """Supprime un fichier (absolu ou relatif à UPLOAD_PATH) s'il existe"""
    if not chemin:
        return False
    chemin = Path(chemin)
    if not chemin.is_absolute():
        chemin = chemin_absolu(chemin)
    try:
        chemin.unlink()
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.error(f"Impossible de supprimer le fichier {chemin}: {str(e)}")
        return False
