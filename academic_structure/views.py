# academic_structure/views.py
import logging

from django.db.models import Prefetch
from django.shortcuts import get_object_or_404
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets, status, filters
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated

from audit.services import journaliser
from isi_archive.exceptions import ErreurMetier
from isi_archive.reponses import reponse_succes
from utilisateurs.models import Utilisateur
from utilisateurs.permissions import EstAdmin
from .models import Niveau, Filiere, Matiere, ProfesseurMatiere
from .serializers import (
    NiveauSerializer, FiliereSerializer, MatiereSerializer,
    AffectationSerializer, AffectationsMatiereSerializer,
)
from .filters import FiliereFilter, MatiereFilter
from . import services

logger = logging.getLogger(__name__)


def _est_admin(request):
    return bool(request.user and request.user.is_authenticated and request.user.role == 'admin')


def _inclure_supprimes(request):
    return request.query_params.get('include_deleted') in ('true', '1') and _est_admin(request)


class NiveauViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Niveaux avec leurs filières actives et leurs semestres (lecture seule)
    """
    queryset = Niveau.objects.prefetch_related('filieres', 'semestres')
    serializer_class = NiveauSerializer
    permission_classes = [AllowAny]
    pagination_class = None

    def list(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_queryset(), many=True)
        return reponse_succes('Niveaux récupérés avec succès', serializer.data)


class FiliereViewSet(viewsets.ModelViewSet):
    """
    Filières : lecture ouverte, écriture réservée aux administrateurs
    """
    serializer_class = FiliereSerializer
    pagination_class = None
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = FiliereFilter
    search_fields = ['nom', 'code']
    ordering_fields = ['nom', 'code']
    http_method_names = ['get', 'post', 'put', 'delete', 'head', 'options']

    def get_permissions(self):
        if self.action in ('list', 'retrieve'):
            return [AllowAny()]
        return [EstAdmin()]

    def get_queryset(self):
        queryset = Filiere.objects.select_related('niveau')
        if not _inclure_supprimes(self.request) and self.action != 'restore':
            queryset = queryset.filter(is_deleted=False)
        return queryset

    def list(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.filter_queryset(self.get_queryset()), many=True)
        return reponse_succes('Filières récupérées avec succès', serializer.data)

    def retrieve(self, request, *args, **kwargs):
        return reponse_succes('Filière récupérée avec succès', self.get_serializer(self.get_object()).data)

    def perform_create(self, serializer):
        filiere = serializer.save()
        journaliser(self.request.user, 'FILIERE_CREATE', 'filiere', filiere.pk,
                    {'code': filiere.code, 'nom': filiere.nom}, self.request)
        logger.info(f"Filière {filiere.code} créée par {self.request.user.email}")

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.perform_create(serializer)
        return reponse_succes('Filière créée avec succès', serializer.data, status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        filiere = self.get_object()
        serializer = self.get_serializer(filiere, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        journaliser(request.user, 'FILIERE_UPDATE', 'filiere', filiere.pk, {'champs': list(request.data.keys())}, request)
        return reponse_succes('Filière mise à jour avec succès', serializer.data)

    def destroy(self, request, *args, **kwargs):
        filiere = self.get_object()
        nombre = services.supprimer_filiere(filiere)
        journaliser(request.user, 'FILIERE_DELETE', 'filiere', filiere.pk,
                    {'code': filiere.code, 'matieres_supprimees': nombre}, request)
        return reponse_succes('Filière supprimée avec succès')

    @action(detail=True, methods=['post'])
    def restore(self, request, pk=None):
        """Restaurer une filière supprimée"""
        filiere = get_object_or_404(Filiere, pk=pk)
        nombre = services.restaurer_filiere(filiere)
        journaliser(request.user, 'FILIERE_RESTORE', 'filiere', filiere.pk,
                    {'code': filiere.code, 'matieres_restaurees': nombre}, request)
        return reponse_succes('Filière restaurée avec succès', self.get_serializer(filiere).data)


class MatiereViewSet(viewsets.ModelViewSet):
    """
    Matières avec filtrage par filière, semestre et niveau
    """
    serializer_class = MatiereSerializer
    pagination_class = None
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = MatiereFilter
    search_fields = ['nom', 'code']
    ordering_fields = ['nom', 'code', 'semestre__ordre']
    http_method_names = ['get', 'post', 'put', 'delete', 'head', 'options']

    def get_permissions(self):
        if self.action == 'list':
            return [AllowAny()]
        if self.action in ('retrieve', 'professeurs'):
            if self.request.method == 'PUT':
                return [EstAdmin()]
            return [IsAuthenticated()]
        return [EstAdmin()]

    def get_queryset(self):
        queryset = Matiere.objects.select_related('filiere', 'filiere__niveau', 'semestre').prefetch_related(
            Prefetch('affectations', queryset=ProfesseurMatiere.objects.select_related('professeur'))
        )
        if not _inclure_supprimes(self.request) and self.action != 'restore':
            queryset = queryset.filter(is_deleted=False)
        return queryset

    def list(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.filter_queryset(self.get_queryset()), many=True)
        return reponse_succes('Matières récupérées avec succès', serializer.data)

    def retrieve(self, request, *args, **kwargs):
        matiere = self.get_object()
        if not services.peut_acceder_matiere(request.user, matiere):
            logger.warning(f"Accès refusé à la matière {matiere.pk} pour {request.user.email}")
            raise ErreurMetier("Vous n'avez pas accès à cette matière", status_code=status.HTTP_403_FORBIDDEN)
        return reponse_succes('Matière récupérée avec succès', self.get_serializer(matiere).data)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        matiere = serializer.save()
        journaliser(request.user, 'MATIERE_CREATE', 'matiere', matiere.pk,
                    {'code': matiere.code, 'nom': matiere.nom}, request)
        return reponse_succes('Matière créée avec succès', serializer.data, status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        matiere = self.get_object()
        serializer = self.get_serializer(matiere, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        journaliser(request.user, 'MATIERE_UPDATE', 'matiere', matiere.pk, {'champs': list(request.data.keys())}, request)
        return reponse_succes('Matière mise à jour avec succès', serializer.data)

    def destroy(self, request, *args, **kwargs):
        matiere = self.get_object()
        services.supprimer_matiere(matiere)
        journaliser(request.user, 'MATIERE_DELETE', 'matiere', matiere.pk, {'code': matiere.code}, request)
        return reponse_succes('Matière supprimée avec succès')

    @action(detail=True, methods=['post'])
    def restore(self, request, pk=None):
        """Restaurer une matière supprimée"""
        matiere = get_object_or_404(Matiere, pk=pk)
        services.restaurer_matiere(matiere)
        journaliser(request.user, 'MATIERE_RESTORE', 'matiere', matiere.pk, {'code': matiere.code}, request)
        return reponse_succes('Matière restaurée avec succès', self.get_serializer(matiere).data)

    @action(detail=True, methods=['get', 'put'])
    def professeurs(self, request, pk=None):
        """Professeurs d'une matière (GET) ou remplacement de toutes les affectations (PUT)"""
        matiere = self.get_object()

        if request.method == 'PUT':
            serializer = AffectationsMatiereSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            affectations = []
            for entree in serializer.validated_data['professeurs']:
                professeur = Utilisateur.objects.filter(pk=entree['professeur_id']).first()
                if professeur is None or professeur.role != 'professeur':
                    raise ErreurMetier(f"L'utilisateur {entree['professeur_id']} n'est pas un professeur")
                affectations.append({'professeur': professeur, 'roles': entree['roles']})
            services.remplacer_professeurs(matiere, affectations)
            matiere = self.get_queryset().get(pk=matiere.pk)
            return reponse_succes(
                'Professeurs de la matière mis à jour avec succès', self.get_serializer(matiere).data
            )

        affectations = ProfesseurMatiere.objects.filter(matiere=matiere).select_related('professeur')
        data = [
            {
                'id': groupe['objet'].pk,
                'email': groupe['objet'].email,
                'prenom': groupe['objet'].prenom,
                'nom': groupe['objet'].nom,
                'roles': groupe['roles'],
            }
            for groupe in services.grouper_affectations(affectations, 'professeur')
        ]
        return reponse_succes('Professeurs récupérés avec succès', data)


class ProfesseurViewSet(viewsets.ViewSet):
    """
    Affectations des matières d'un professeur
    """
    permission_classes = [IsAuthenticated]

    def _professeur(self, pk):
        professeur = get_object_or_404(Utilisateur, pk=pk)
        if professeur.role != 'professeur':
            raise ErreurMetier("L'utilisateur n'est pas un professeur")
        return professeur

    @action(detail=True, methods=['get', 'post'])
    def matieres(self, request, pk=None):
        """Matières d'un professeur (GET) ou nouvelle affectation (POST, admin)"""
        professeur = self._professeur(pk)

        if request.method == 'POST':
            if not _est_admin(request):
                raise ErreurMetier('Accès réservé aux administrateurs', status_code=status.HTTP_403_FORBIDDEN)
            serializer = AffectationSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            affectation = services.affecter_matiere(
                professeur, serializer.validated_data['matiere'], serializer.validated_data['role']
            )
            return reponse_succes('Matière affectée avec succès', {
                'id': affectation.pk,
                'professeur_id': professeur.pk,
                'matiere_id': affectation.matiere_id,
                'role': affectation.role,
            }, status.HTTP_201_CREATED)

        if request.user.role == 'etudiant':
            raise ErreurMetier('Accès refusé', status_code=status.HTTP_403_FORBIDDEN)

        affectations = ProfesseurMatiere.objects.filter(
            professeur=professeur, matiere__is_deleted=False
        ).select_related('matiere', 'matiere__filiere', 'matiere__semestre')
        data = []
        for groupe in services.grouper_affectations(affectations, 'matiere'):
            matiere = groupe['objet']
            data.append({
                'id': matiere.pk,
                'nom': matiere.nom,
                'code': matiere.code,
                'filiere': {'id': matiere.filiere_id, 'nom': matiere.filiere.nom, 'code': matiere.filiere.code},
                'semestre': {'id': matiere.semestre_id, 'nom': matiere.semestre.nom},
                'roles': groupe['roles'],
            })
        return reponse_succes('Matières du professeur récupérées avec succès', data)

    @action(detail=True, methods=['delete'], url_path=r'matieres/(?P<matiere_id>\d+)')
    def retirer_matiere(self, request, pk=None, matiere_id=None):
        """Retirer une matière (ou un seul rôle via ?role=) à un professeur"""
        if not _est_admin(request):
            raise ErreurMetier('Accès réservé aux administrateurs', status_code=status.HTTP_403_FORBIDDEN)
        professeur = self._professeur(pk)
        matiere = get_object_or_404(Matiere, pk=matiere_id)
        role = request.query_params.get('role')
        if role and role not in dict(ProfesseurMatiere.ROLE_CHOICES):
            raise ErreurMetier('Le rôle doit être cours, td ou tp')
        services.retirer_matiere(professeur, matiere, role)
        logger.info(f"Matière {matiere.code} retirée au professeur {professeur.email}")
        return reponse_succes('Affectation supprimée avec succès')
