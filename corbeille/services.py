# corbeille/services.py
"""
Corbeille : les documents supprimés restent récupérables pendant
CORBEILLE_RETENTION_DAYS jours, puis sont purgés avec leurs fichiers.
"""
import logging
import math
from datetime import timedelta

from django.conf import settings
from django.db.models import Count
from django.utils import timezone
from rest_framework import status

from documents.models import Document
from documents.services import supprimer_definitivement
from isi_archive.exceptions import ErreurMetier

logger = logging.getLogger(__name__)


def duree_retention():
    return timedelta(days=settings.CORBEILLE_RETENTION_DAYS)


def documents_en_corbeille(utilisateur):
    """Documents supprimés encore récupérables, les siens ou tous pour un administrateur"""
    queryset = Document.objects.filter(
        is_deleted=True, deleted_at__gte=timezone.now() - duree_retention()
    )
    if utilisateur.role != 'admin':
        queryset = queryset.filter(telecharge_par=utilisateur)
    return queryset


def jours_avant_suppression(document, maintenant=None):
    maintenant = maintenant or timezone.now()
    restant = (document.deleted_at + duree_retention()) - maintenant
    return max(0, math.ceil(restant.total_seconds() / 86400))


def documents_expirant(utilisateur, jours=7):
    """Documents dont la suppression définitive intervient dans les `jours` prochains jours"""
    limite = timezone.now() - duree_retention() + timedelta(days=jours)
    return documents_en_corbeille(utilisateur).filter(deleted_at__lte=limite).order_by('deleted_at')


def restaurer_document(utilisateur, document_id):
    document = Document.objects.filter(pk=document_id, is_deleted=True).first()
    if document is None:
        raise ErreurMetier('Document supprimé non trouvé', status_code=status.HTTP_404_NOT_FOUND)
    if document.deleted_at and document.deleted_at < timezone.now() - duree_retention():
        raise ErreurMetier(
            f"La période de récupération de {settings.CORBEILLE_RETENTION_DAYS} jours est expirée"
        )
    if utilisateur.role != 'admin' and document.telecharge_par_id != utilisateur.pk:
        raise ErreurMetier('Permissions insuffisantes', status_code=status.HTTP_403_FORBIDDEN)
    if document.correction_de_id:
        parent = document.correction_de
        if parent.is_deleted:
            raise ErreurMetier('Restaurez d\'abord le document corrigé')
        if parent.corrections.filter(is_deleted=False).exclude(pk=document.pk).exists():
            raise ErreurMetier('Une correction existe déjà pour ce document')

    document.is_deleted = False
    document.deleted_at = None
    document.deleted_by = None
    document.save(update_fields=['is_deleted', 'deleted_at', 'deleted_by', 'date_modification'])
    logger.info(f"Document {document.titre} restauré par {utilisateur.email}")
    return document


def statistiques(utilisateur):
    queryset = documents_en_corbeille(utilisateur)
    maintenant = timezone.now()
    return {
        'total_deleted': queryset.count(),
        'expiring_soon': documents_expirant(utilisateur).count(),
        'recent_deletions': queryset.filter(deleted_at__gte=maintenant - timedelta(days=7)).count(),
        'by_category': {
            ligne['categorie']: ligne['total']
            for ligne in queryset.values('categorie').annotate(total=Count('id'))
        },
    }


def documents_a_purger(jours=None):
    jours = settings.CORBEILLE_RETENTION_DAYS if jours is None else jours
    return Document.objects.filter(
        is_deleted=True, deleted_at__lt=timezone.now() - timedelta(days=jours)
    )


def purger(jours=None):
    """Suppression définitive des documents restés trop longtemps en corbeille"""
    nombre = 0
    for document in documents_a_purger(jours):
        supprimer_definitivement(document)
        nombre += 1
    logger.info(f"{nombre} document(s) supprimé(s) définitivement de la corbeille")
    return nombre
