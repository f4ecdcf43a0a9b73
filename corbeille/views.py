# corbeille/views.py
import logging

from django.shortcuts import get_object_or_404
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated

from audit.services import journaliser
from documents.models import Document
from documents.services import supprimer_definitivement
from isi_archive.pagination import PaginationDocuments
from isi_archive.reponses import reponse_succes
from utilisateurs.permissions import EstAdmin
from .serializers import DocumentCorbeilleSerializer
from . import services

logger = logging.getLogger(__name__)


class CorbeilleViewSet(viewsets.GenericViewSet):
    """
    Corbeille des documents supprimés
    """
    serializer_class = DocumentCorbeilleSerializer
    pagination_class = PaginationDocuments
    permission_classes = [IsAuthenticated]

    def get_permissions(self):
        if self.action == 'permanent':
            return [EstAdmin()]
        return super().get_permissions()

    def get_queryset(self):
        return services.documents_en_corbeille(self.request.user).select_related(
            'telecharge_par', 'deleted_by', 'matiere'
        ).order_by('-deleted_at')

    @action(detail=False, methods=['get'])
    def documents(self, request):
        """Documents supprimés récupérables"""
        page = self.paginate_queryset(self.get_queryset())
        serializer = self.get_serializer(page, many=True)
        journaliser(request.user, 'PAGE_ACCESS', 'trash', None, {'page': 'corbeille'}, request)
        return self.get_paginated_response(serializer.data)

    @action(detail=False, methods=['post'], url_path=r'documents/(?P<document_id>\d+)/restore')
    def restore(self, request, document_id=None):
        document = services.restaurer_document(request.user, document_id)
        journaliser(request.user, 'DOCUMENT_RESTORE', 'document', document.pk, {'titre': document.titre}, request)
        return reponse_succes('Document restauré avec succès', {
            'id': document.pk,
            'titre': document.titre,
            'categorie': document.categorie,
        })

    @action(detail=False, methods=['get'], url_path='documents/expiring')
    def expiring(self, request):
        """Documents dont la suppression définitive est proche (?days=7)"""
        try:
            jours = int(request.query_params.get('days', 7))
        except ValueError:
            raise ValidationError({'days': 'Le nombre de jours doit être un entier'})
        if jours < 1 or jours > 30:
            raise ValidationError({'days': 'Le nombre de jours doit être compris entre 1 et 30'})
        documents = services.documents_expirant(request.user, jours).select_related('telecharge_par', 'matiere')
        serializer = self.get_serializer(documents, many=True)
        return reponse_succes('Documents expirant bientôt récupérés avec succès', serializer.data)

    @action(detail=False, methods=['delete'], url_path=r'documents/(?P<document_id>\d+)/permanent')
    def permanent(self, request, document_id=None):
        """Suppression définitive d'un document en corbeille (administrateur)"""
        document = get_object_or_404(Document, pk=document_id, is_deleted=True)
        titre = document.titre
        fichiers = supprimer_definitivement(document)
        journaliser(request.user, 'DOCUMENT_DELETE', 'document', document_id,
                    {'titre': titre, 'definitif': True, 'fichiers': fichiers}, request)
        logger.info(f"Document {titre} supprimé définitivement par {request.user.email}")
        return reponse_succes('Document supprimé définitivement')

    @action(detail=False, methods=['get'])
    def stats(self, request):
        return reponse_succes('Statistiques de la corbeille récupérées avec succès',
                              services.statistiques(request.user))
