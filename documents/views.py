# documents/views.py
"""
ViewSet des documents : consultation, dépôt, PFE, téléchargement et corrections.
"""
import logging
from urllib.parse import quote

from django.db.models import Prefetch, Q
from django.http import FileResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.parsers import MultiPartParser, FormParser, JSONParser
from rest_framework.permissions import IsAuthenticated

from academic_structure.models import Matiere
from audit.services import journaliser
from isi_archive.exceptions import ErreurMetier
from isi_archive.pagination import PaginationDocuments
from isi_archive.reponses import reponse_succes
from utilisateurs.models import Utilisateur
from utilisateurs.permissions import EstAdmin, EstProfesseurOuAdmin
from .filters import DocumentFilter
from .models import Document
from .serializers import (
    DocumentSerializer, DocumentCreationSerializer, DocumentPFECreationSerializer,
    DocumentMiseAJourSerializer,
)
from . import services, stockage

logger = logging.getLogger(__name__)


def _recherche(request):
    recherche = request.query_params.get('search', '').strip()
    if len(recherche) > 100:
        raise ValidationError({'search': 'La recherche ne peut pas dépasser 100 caractères'})
    return recherche


class DocumentViewSet(viewsets.GenericViewSet):
    serializer_class = DocumentSerializer
    pagination_class = PaginationDocuments
    filterset_class = DocumentFilter
    parser_classes = [MultiPartParser, FormParser, JSONParser]
    lookup_value_regex = r'\d+'

    def get_permissions(self):
        if self.action in ('create', 'correction'):
            return [EstProfesseurOuAdmin()]
        if self.action == 'pfe' and self.request.method == 'POST':
            return [EstAdmin()]
        return [IsAuthenticated()]

    def get_queryset(self):
        return Document.objects.filter(is_deleted=False).select_related(
            'telecharge_par', 'matiere__filiere', 'matiere__semestre', 'pfe'
        ).prefetch_related(
            Prefetch('matieres', queryset=Matiere.objects.select_related('filiere', 'semestre')),
            'corrections',
        )

    def _document(self, pk):
        return get_object_or_404(self.get_queryset(), pk=pk)

    def _reponse_paginee(self, queryset):
        page = self.paginate_queryset(queryset)
        serializer = self.get_serializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def _verifier_proprietaire(self, request, document):
        if request.user.role != 'admin' and document.telecharge_par_id != request.user.pk:
            raise ErreurMetier(
                'Seul le propriétaire ou un administrateur peut modifier ce document',
                status_code=status.HTTP_403_FORBIDDEN,
            )

    # ===============================
    # CONSULTATION
    # ===============================

    def list(self, request):
        """Documents visibles par l'utilisateur, filtrables par matière, catégorie et recherche"""
        queryset = services.documents_visibles(request.user).select_related(
            'telecharge_par', 'matiere__filiere', 'matiere__semestre', 'pfe'
        ).prefetch_related(
            Prefetch('matieres', queryset=Matiere.objects.select_related('filiere', 'semestre')),
            'corrections',
        )
        queryset = self.filter_queryset(queryset)
        recherche = _recherche(request)
        if recherche:
            queryset = queryset.filter(Q(titre__icontains=recherche) | Q(description__icontains=recherche))
        return self._reponse_paginee(queryset.order_by('-date_creation'))

    def retrieve(self, request, pk=None):
        document = self._document(pk)
        services.verifier_acces_document(request.user, document)
        if services.enregistrer_vue(request.user, document):
            document.view_count += 1
            journaliser(request.user, 'DOCUMENT_VIEW', 'document', document.pk, {'titre': document.titre}, request)
        return reponse_succes('Document récupéré avec succès', self.get_serializer(document).data)

    @action(detail=True, methods=['get'])
    def download(self, request, pk=None):
        """Téléchargement du fichier en pièce jointe"""
        document = self._document(pk)
        services.verifier_acces_document(request.user, document)

        chemin = stockage.chemin_absolu(document.chemin_fichier)
        if not chemin.is_file():
            logger.error(f"Fichier introuvable sur le disque pour le document {document.pk}: {chemin}")
            raise ErreurMetier('Fichier non trouvé sur le serveur', status_code=status.HTTP_404_NOT_FOUND)

        services.enregistrer_telechargement(document)
        journaliser(request.user, 'DOCUMENT_DOWNLOAD', 'document', document.pk,
                    {'nom_fichier': document.nom_fichier}, request)

        reponse = FileResponse(open(chemin, 'rb'), content_type=document.type_mime)
        reponse['Content-Disposition'] = f"attachment; filename*=UTF-8''{quote(document.nom_fichier)}"
        return reponse

    @action(detail=False, methods=['get'], url_path=r'professor/(?P<professeur_id>\d+)')
    def professor(self, request, professeur_id=None):
        """Documents déposés par un professeur (lui-même ou un administrateur)"""
        professeur = get_object_or_404(Utilisateur, pk=professeur_id)
        if request.user.role != 'admin' and request.user.pk != professeur.pk:
            raise ErreurMetier('Accès refusé', status_code=status.HTTP_403_FORBIDDEN)
        queryset = self.get_queryset().filter(telecharge_par=professeur, correction_de__isnull=True)
        return self._reponse_paginee(queryset)

    # ===============================
    # DÉPÔT
    # ===============================

    def create(self, request):
        """Dépôt d'un document (champ multipart 'document')"""
        fichier = stockage.extraire_fichier(request)
        serializer = DocumentCreationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        matieres = serializer.validated_data['matieres']
        services.verifier_affectations(request.user, matieres)

        document = services.deposer_document(
            request.user, fichier, serializer.validated_data, matieres, serializer.emplacement()
        )
        journaliser(request.user, 'DOCUMENT_UPLOAD', 'document', document.pk, {
            'titre': document.titre,
            'categorie': document.categorie,
            'matieres': [m.pk for m in matieres],
        }, request)
        return reponse_succes(
            'Document téléversé avec succès', self.get_serializer(self._document(document.pk)).data,
            status.HTTP_201_CREATED,
        )

    @action(detail=False, methods=['get', 'post'])
    def pfe(self, request):
        """Liste des PFE (GET) ou dépôt d'un PFE par un administrateur (POST)"""
        if request.method == 'POST':
            fichier = stockage.extraire_fichier(request)
            serializer = DocumentPFECreationSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            document = services.deposer_document(
                request.user, fichier, serializer.validated_data, [], serializer.emplacement(),
                pfe=serializer.metadonnees_pfe(),
            )
            journaliser(request.user, 'DOCUMENT_UPLOAD', 'document', document.pk,
                        {'titre': document.titre, 'categorie': 'pfe'}, request)
            return reponse_succes(
                'PFE téléversé avec succès', self.get_serializer(self._document(document.pk)).data,
                status.HTTP_201_CREATED,
            )

        if not services.peut_voir_pfe(request.user):
            raise ErreurMetier(
                'Les PFE sont réservés aux étudiants de L3, 3ING et M2',
                status_code=status.HTTP_403_FORBIDDEN,
            )
        queryset = self.filter_queryset(self.get_queryset().filter(categorie='pfe', correction_de__isnull=True))
        recherche = _recherche(request)
        if recherche:
            queryset = queryset.filter(
                Q(titre__icontains=recherche) | Q(pfe__titre_projet__icontains=recherche)
                | Q(pfe__resume__icontains=recherche)
            )
        return self._reponse_paginee(queryset)

    @action(detail=True, methods=['post'])
    def correction(self, request, pk=None):
        """Ajout de la correction d'un document"""
        parent = get_object_or_404(Document, pk=pk)
        fichier = stockage.extraire_fichier(request)
        correction = services.deposer_correction(request.user, parent, fichier)
        journaliser(request.user, 'DOCUMENT_UPLOAD', 'document', correction.pk,
                    {'titre': correction.titre, 'correction_de': parent.pk}, request)
        return reponse_succes(
            'Correction ajoutée avec succès', self.get_serializer(self._document(correction.pk)).data,
            status.HTTP_201_CREATED,
        )

    # ===============================
    # MODIFICATION ET SUPPRESSION
    # ===============================

    def update(self, request, pk=None):
        document = self._document(pk)
        self._verifier_proprietaire(request, document)
        serializer = DocumentMiseAJourSerializer(document, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        journaliser(request.user, 'DOCUMENT_UPDATE', 'document', document.pk,
                    {'champs': list(request.data.keys())}, request)
        return reponse_succes('Document mis à jour avec succès', self.get_serializer(self._document(pk)).data)

    def destroy(self, request, pk=None):
        """Suppression logique : le document part en corbeille"""
        document = self._document(pk)
        self._verifier_proprietaire(request, document)
        document.is_deleted = True
        document.deleted_at = timezone.now()
        document.deleted_by = request.user
        document.save(update_fields=['is_deleted', 'deleted_at', 'deleted_by', 'date_modification'])
        journaliser(request.user, 'DOCUMENT_DELETE', 'document', document.pk, {'titre': document.titre}, request)
        logger.info(f"Document {document.pk} placé en corbeille par {request.user.email}")
        return reponse_succes('Document supprimé avec succès')
