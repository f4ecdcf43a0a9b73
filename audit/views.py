# audit/views.py
import logging

from django.conf import settings
from django.shortcuts import get_object_or_404
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError

from isi_archive.pagination import PaginationJournaux
from isi_archive.reponses import reponse_succes
from utilisateurs.models import Utilisateur
from utilisateurs.permissions import EstAdmin
from .models import AuditLog
from .serializers import AuditLogSerializer, FiltresJournauxSerializer, NettoyageSerializer
from . import services

logger = logging.getLogger(__name__)


class AuditViewSet(viewsets.GenericViewSet):
    """
    Consultation du journal d'audit (administrateurs)
    """
    queryset = AuditLog.objects.select_related('utilisateur')
    serializer_class = AuditLogSerializer
    pagination_class = PaginationJournaux
    permission_classes = [EstAdmin]

    @action(detail=False, methods=['get'])
    def logs(self, request):
        filtres = FiltresJournauxSerializer(data=request.query_params)
        filtres.is_valid(raise_exception=True)
        queryset = services.filtrer_journaux(self.get_queryset(), filtres.validated_data)
        page = self.paginate_queryset(queryset.order_by('-date_creation'))
        return self.get_paginated_response(self.get_serializer(page, many=True).data)

    @action(detail=False, methods=['get'], url_path=r'users/(?P<user_id>\d+)/activity')
    def activity(self, request, user_id=None):
        """Activité d'un utilisateur sur les `days` derniers jours"""
        utilisateur = get_object_or_404(Utilisateur, pk=user_id)
        try:
            jours = int(request.query_params.get('days', 30))
        except ValueError:
            raise ValidationError({'days': 'Le nombre de jours doit être un entier'})
        if jours < 1 or jours > 365:
            raise ValidationError({'days': 'Le nombre de jours doit être compris entre 1 et 365'})

        activite = services.activite_utilisateur(utilisateur, jours)
        return reponse_succes("Activité de l'utilisateur récupérée avec succès", {
            'user': {'id': utilisateur.pk, 'email': utilisateur.email, 'prenom': utilisateur.prenom, 'nom': utilisateur.nom},
            'period_days': jours,
            'summary': activite['summary'],
            'recent': self.get_serializer(activite['recent'], many=True).data,
        })

    @action(detail=False, methods=['get'])
    def stats(self, request):
        return reponse_succes("Statistiques d'audit récupérées avec succès", services.statistiques())

    @action(detail=False, methods=['get'])
    def actions(self, request):
        """Actions journalisées disponibles pour le filtrage"""
        return reponse_succes('Actions récupérées avec succès', [
            {'value': valeur, 'label': libelle} for valeur, libelle in AuditLog.ACTION_CHOICES
        ])

    @action(detail=False, methods=['post'])
    def cleanup(self, request):
        serializer = NettoyageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        jours = serializer.validated_data.get('retention_days', settings.AUDIT_RETENTION_DAYS)
        nombre = services.nettoyer_anciens_journaux(jours)
        logger.info(f"Nettoyage du journal d'audit par {request.user.email}: {nombre} entrée(s)")
        return reponse_succes(f"Journaux de plus de {jours} jours supprimés", {'deleted': nombre, 'retention_days': jours})
