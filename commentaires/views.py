# commentaires/views.py
import logging

from django.db.models import Prefetch
from django.shortcuts import get_object_or_404
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated

from audit.services import journaliser
from documents.models import Document
from documents.services import verifier_acces_document
from isi_archive.exceptions import ErreurMetier
from isi_archive.pagination import PaginationCommentaires
from isi_archive.reponses import reponse_succes
from .models import Commentaire
from .serializers import (
    CommentaireSerializer, CommentaireCreationSerializer, CommentaireMiseAJourSerializer,
)
from . import services

logger = logging.getLogger(__name__)


def _document_accessible(user, document_id):
    document = get_object_or_404(Document, pk=document_id, is_deleted=False)
    verifier_acces_document(user, document)
    return document


class CommentairesDocumentView(GenericAPIView):
    """
    Commentaires d'un document : liste paginée (GET) et ajout (POST)
    """
    serializer_class = CommentaireSerializer
    pagination_class = PaginationCommentaires
    permission_classes = [IsAuthenticated]

    def get(self, request, document_id):
        document = _document_accessible(request.user, document_id)
        queryset = Commentaire.objects.filter(
            document=document, parent__isnull=True, is_deleted=False
        ).select_related('auteur').prefetch_related(
            Prefetch('reponses', queryset=Commentaire.objects.select_related('auteur'))
        ).order_by('-date_creation')

        page = self.paginate_queryset(queryset)
        serializer = self.get_serializer(page, many=True)
        data = serializer.data
        for commentaire, donnees in zip(page, data):
            donnees['can_reply'] = services.peut_repondre(request.user, commentaire)[0]

        reponse = self.get_paginated_response(data)
        reponse.data['can_moderate'] = services.peut_moderer(request.user, document)
        return reponse

    def post(self, request, document_id):
        document = _document_accessible(request.user, document_id)
        serializer = CommentaireCreationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        parent = None
        parent_id = serializer.validated_data.get('parent_id')
        if parent_id:
            parent = Commentaire.objects.select_related('auteur', 'parent').filter(pk=parent_id).first()
            if parent is None:
                raise ErreurMetier('Commentaire parent non trouvé', status_code=status.HTTP_404_NOT_FOUND)

        commentaire = services.creer_commentaire(
            request.user, document, serializer.validated_data['contenu'], parent
        )
        journaliser(request.user, 'COMMENT_CREATE', 'comment', commentaire.pk,
                    {'document_id': document.pk, 'parent_id': commentaire.parent_id}, request)
        return reponse_succes(
            'Commentaire ajouté avec succès', CommentaireSerializer(commentaire).data, status.HTTP_201_CREATED
        )


class CommentaireViewSet(viewsets.GenericViewSet):
    """
    Modification, suppression et droit de réponse d'un commentaire
    """
    queryset = Commentaire.objects.filter(is_deleted=False).select_related('auteur', 'document', 'parent__auteur')
    serializer_class = CommentaireSerializer
    permission_classes = [IsAuthenticated]
    lookup_value_regex = r'\d+'

    def update(self, request, pk=None):
        commentaire = self.get_object()
        if commentaire.auteur_id != request.user.pk and request.user.role != 'admin':
            raise ErreurMetier(
                'Vous ne pouvez modifier que vos propres commentaires', status_code=status.HTTP_403_FORBIDDEN
            )
        serializer = CommentaireMiseAJourSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        commentaire.contenu = serializer.validated_data['contenu']
        commentaire.is_edited = True
        commentaire.save(update_fields=['contenu', 'is_edited', 'date_modification'])
        journaliser(request.user, 'COMMENT_UPDATE', 'comment', commentaire.pk,
                    {'document_id': commentaire.document_id}, request)
        return reponse_succes('Commentaire mis à jour avec succès', self.get_serializer(commentaire).data)

    def destroy(self, request, pk=None):
        commentaire = self.get_object()
        if commentaire.auteur_id != request.user.pk and not services.peut_moderer(request.user, commentaire.document):
            raise ErreurMetier(
                "Vous n'avez pas le droit de supprimer ce commentaire", status_code=status.HTTP_403_FORBIDDEN
            )
        nombre = services.supprimer_commentaire(commentaire, request.user)
        journaliser(request.user, 'COMMENT_DELETE', 'comment', commentaire.pk,
                    {'document_id': commentaire.document_id, 'reponses_supprimees': nombre}, request)
        logger.info(f"Commentaire {commentaire.pk} supprimé par {request.user.email}")
        return reponse_succes('Commentaire supprimé avec succès')

    @action(detail=True, methods=['get'], url_path='can-reply')
    def can_reply(self, request, pk=None):
        commentaire = self.get_object()
        autorise, raison = services.peut_repondre(request.user, commentaire)
        return reponse_succes(
            'Réponse autorisée' if autorise else 'Réponse non autorisée',
            {'can_reply': autorise, 'reason': raison},
        )
