# dashboard/views.py
import logging

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated

from isi_archive.exceptions import ErreurMetier
from isi_archive.reponses import reponse_succes
from . import services

logger = logging.getLogger(__name__)


class DashboardViewSet(viewsets.ViewSet):
    """
    Tableaux de bord par rôle
    """
    permission_classes = [IsAuthenticated]

    def _exiger_role(self, request, role, libelle):
        if request.user.role != role:
            logger.warning(f"Accès refusé au dashboard {role} pour {request.user.email}")
            raise ErreurMetier(
                f"Seuls les {libelle} peuvent accéder à ce dashboard", status_code=status.HTTP_403_FORBIDDEN
            )

    @action(detail=False, methods=['get'])
    def admin(self, request):
        self._exiger_role(request, 'admin', 'administrateurs')
        return reponse_succes('Dashboard admin récupéré avec succès', services.tableau_admin())

    @action(detail=False, methods=['get'])
    def professor(self, request):
        self._exiger_role(request, 'professeur', 'professeurs')
        return reponse_succes('Dashboard professeur récupéré avec succès', services.tableau_professeur(request.user))

    @action(detail=False, methods=['get'])
    def student(self, request):
        self._exiger_role(request, 'etudiant', 'étudiants')
        return reponse_succes('Dashboard étudiant récupéré avec succès', services.tableau_etudiant(request.user))
