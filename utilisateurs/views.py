# utilisateurs/views.py
"""
ViewSets pour l'authentification et la gestion des utilisateurs.
Organisé par sections : Authentification, Mots de passe, Administration des comptes.
"""
import logging

from django.contrib.auth import authenticate
from django.contrib.auth.models import update_last_login
from django.db.models import Count, Q
from django.utils import timezone
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated, AllowAny

from audit.services import journaliser
from isi_archive.exceptions import ErreurMetier
from isi_archive.pagination import PaginationUtilisateurs
from isi_archive.reponses import reponse_succes, reponse_erreur
from .filters import UtilisateurFilter
from .models import Utilisateur
from .permissions import EstAdmin, EstProprietaireOuAdmin
from .serializers import (
    UtilisateurSerializer, UtilisateurCreationSerializer, ProfilSerializer,
    ConnexionSerializer, RafraichissementSerializer, ChangementMotDePasseSerializer,
    DemandeReinitialisationSerializer, ReinitialisationSerializer, MiseAJourGroupeeSerializer,
)
from .services import demander_reinitialisation
from .tokens import TokenInvalide, creer_paire_tokens, decoder_refresh_token

logger = logging.getLogger(__name__)

CHAMPS_RESERVES_ADMIN = {'role', 'is_active', 'filiere_id', 'niveau_id'}


class AuthViewSet(viewsets.ViewSet):
    """Connexion, jetons et profil de l'utilisateur connecté"""
    permission_classes = [IsAuthenticated]

    # ===============================
    # AUTHENTIFICATION
    # ===============================

    @action(detail=False, methods=['post'], permission_classes=[AllowAny], authentication_classes=[])
    def login(self, request):
        """Connexion par email et mot de passe"""
        serializer = ConnexionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data['email'].strip().lower()

        utilisateur = Utilisateur.objects.filter(email__iexact=email).first()
        if utilisateur is not None and not utilisateur.is_active:
            logger.warning(f"Tentative de connexion sur un compte désactivé: {email}")
            return reponse_erreur('Login Failed', 'Compte utilisateur désactivé', status.HTTP_401_UNAUTHORIZED)

        utilisateur = authenticate(request, email=email, password=serializer.validated_data['password'])
        if utilisateur is None:
            logger.warning(f"Échec de connexion pour {email}")
            return reponse_erreur('Login Failed', 'Email ou mot de passe incorrect', status.HTTP_401_UNAUTHORIZED)

        update_last_login(None, utilisateur)
        tokens = creer_paire_tokens(utilisateur)
        journaliser(utilisateur, 'LOGIN', 'auth', utilisateur.pk, {'email': utilisateur.email}, request)
        logger.info(f"Connexion réussie pour {utilisateur.email}")

        return reponse_succes('Connexion réussie', {
            'user': UtilisateurSerializer(utilisateur).data,
            **tokens,
        })

    @action(detail=False, methods=['post'], permission_classes=[AllowAny], authentication_classes=[])
    def refresh(self, request):
        """Émission d'une nouvelle paire de jetons à partir du refresh token"""
        serializer = RafraichissementSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            payload = decoder_refresh_token(serializer.validated_data['refresh_token'])
        except TokenInvalide as e:
            logger.warning(f"Refresh token rejeté: {e}")
            return reponse_erreur('Token Refresh Failed', 'Token de rafraîchissement invalide', status.HTTP_401_UNAUTHORIZED)

        utilisateur = Utilisateur.objects.filter(pk=payload['sub']).first()
        if utilisateur is None or not utilisateur.is_active:
            return reponse_erreur('Token Refresh Failed', 'Utilisateur non trouvé ou désactivé', status.HTTP_401_UNAUTHORIZED)
        if payload.get('token_version') != utilisateur.token_version:
            return reponse_erreur('Token Refresh Failed', 'Token de rafraîchissement expiré', status.HTTP_401_UNAUTHORIZED)

        return reponse_succes('Token rafraîchi avec succès', creer_paire_tokens(utilisateur))

    @action(detail=False, methods=['post'])
    def logout(self, request):
        request.user.invalider_tokens()
        journaliser(request.user, 'LOGOUT', 'auth', request.user.pk, None, request)
        logger.info(f"Déconnexion de {request.user.email}")
        return reponse_succes('Déconnexion réussie')

    @action(detail=False, methods=['post'], url_path='logout-all')
    def logout_all(self, request):
        """Révoque tous les refresh tokens de l'utilisateur"""
        request.user.invalider_tokens()
        journaliser(request.user, 'LOGOUT', 'auth', request.user.pk, {'tous_les_appareils': True}, request)
        return reponse_succes('Déconnexion de tous les appareils réussie')

    @action(detail=False, methods=['get', 'put'])
    def profile(self, request):
        """Profil de l'utilisateur connecté (GET) ou mise à jour du nom et prénom (PUT)"""
        if request.method == 'PUT':
            serializer = ProfilSerializer(request.user, data=request.data, partial=True)
            serializer.is_valid(raise_exception=True)
            serializer.save()
            journaliser(request.user, 'USER_UPDATE', 'user', request.user.pk,
                        {'champs': list(serializer.validated_data.keys())}, request)
            return reponse_succes('Profil mis à jour avec succès', {'user': UtilisateurSerializer(request.user).data})

        return reponse_succes('Profil récupéré avec succès', {'user': UtilisateurSerializer(request.user).data})

    @action(detail=False, methods=['get'])
    def check(self, request):
        return reponse_succes('Utilisateur authentifié', {
            'user': UtilisateurSerializer(request.user).data,
            'authenticated': True,
        })

    # ===============================
    # GESTION DES MOTS DE PASSE
    # ===============================

    @action(detail=False, methods=['post'], url_path='change-password')
    def change_password(self, request):
        """Changement de mot de passe pour l'utilisateur connecté"""
        serializer = ChangementMotDePasseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        if not request.user.check_password(serializer.validated_data['current_password']):
            return reponse_erreur('Password Change Failed', 'Mot de passe actuel incorrect')

        request.user.set_password(serializer.validated_data['new_password'])
        request.user.token_version += 1
        request.user.save()
        logger.info(f"Mot de passe modifié pour {request.user.email}")
        return reponse_succes('Mot de passe modifié avec succès. Veuillez vous reconnecter.')

    @action(detail=False, methods=['post'], url_path='forgot-password',
            permission_classes=[AllowAny], authentication_classes=[])
    def forgot_password(self, request):
        """Demande de réinitialisation : la réponse ne révèle pas si le compte existe"""
        serializer = DemandeReinitialisationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data['email'].strip().lower()

        utilisateur = Utilisateur.objects.filter(email__iexact=email, is_active=True).first()
        if utilisateur is not None:
            try:
                demander_reinitialisation(utilisateur)
            except Exception as e:
                logger.error(f"Erreur lors de la demande de réinitialisation: {str(e)}")
                return reponse_erreur(
                    'Password Reset Failed',
                    'Erreur lors de la demande de réinitialisation du mot de passe',
                    status.HTTP_500_INTERNAL_SERVER_ERROR,
                )
        else:
            logger.info(f"Demande de réinitialisation pour un email inconnu: {email}")

        return reponse_succes(
            'Si cet email existe dans notre système, vous recevrez un lien de réinitialisation'
        )

    @action(detail=False, methods=['post'], url_path='reset-password',
            permission_classes=[AllowAny], authentication_classes=[])
    def reset_password(self, request):
        serializer = ReinitialisationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        utilisateur = Utilisateur.objects.filter(
            reset_token=serializer.validated_data['token'],
            reset_token_expiry__gt=timezone.now(),
        ).first()
        if utilisateur is None:
            return reponse_erreur('Password Reset Failed', 'Token de réinitialisation invalide ou expiré')
        if not utilisateur.is_active:
            return reponse_erreur('Password Reset Failed', 'Compte utilisateur désactivé')

        utilisateur.set_password(serializer.validated_data['new_password'])
        utilisateur.reset_token = None
        utilisateur.reset_token_expiry = None
        utilisateur.token_version += 1
        utilisateur.save()
        logger.info(f"Mot de passe réinitialisé pour {utilisateur.email}")
        return reponse_succes('Mot de passe réinitialisé avec succès. Vous pouvez maintenant vous connecter.')


class UtilisateurViewSet(viewsets.ModelViewSet):
    """ViewSet d'administration des comptes"""
    queryset = Utilisateur.objects.select_related('filiere', 'niveau')
    serializer_class = UtilisateurSerializer
    pagination_class = PaginationUtilisateurs
    filterset_class = UtilisateurFilter
    http_method_names = ['get', 'post', 'put', 'patch', 'delete', 'head', 'options']

    def get_permissions(self):
        if self.action in ('retrieve', 'update'):
            return [IsAuthenticated(), EstProprietaireOuAdmin()]
        return [EstAdmin()]

    def get_serializer_class(self):
        if self.action == 'create':
            return UtilisateurCreationSerializer
        return UtilisateurSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action != 'list':
            return queryset

        params = self.request.query_params
        recherche = params.get('search', '').strip()
        if len(recherche) > 100:
            raise ValidationError({'search': 'La recherche ne peut pas dépasser 100 caractères'})
        if recherche:
            queryset = queryset.filter(
                Q(email__icontains=recherche) | Q(prenom__icontains=recherche) | Q(nom__icontains=recherche)
            )
        return queryset

    def retrieve(self, request, *args, **kwargs):
        utilisateur = self.get_object()
        return reponse_succes('Utilisateur récupéré avec succès', {'user': self.get_serializer(utilisateur).data})

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        utilisateur = serializer.save()
        journaliser(request.user, 'USER_CREATE', 'user', utilisateur.pk,
                    {'email': utilisateur.email, 'role': utilisateur.role}, request)
        logger.info(f"Utilisateur {utilisateur.email} créé par {request.user.email}")
        return reponse_succes(
            'Utilisateur créé avec succès',
            {'user': UtilisateurSerializer(utilisateur).data},
            status.HTTP_201_CREATED,
        )

    def update(self, request, *args, **kwargs):
        utilisateur = self.get_object()
        if request.user.role != 'admin' and CHAMPS_RESERVES_ADMIN & set(request.data.keys()):
            raise ErreurMetier(
                'Seul un administrateur peut modifier le rôle, le statut ou le rattachement académique',
                status_code=status.HTTP_403_FORBIDDEN,
            )
        serializer = self.get_serializer(utilisateur, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        journaliser(request.user, 'USER_UPDATE', 'user', utilisateur.pk,
                    {'champs': list(request.data.keys())}, request)
        return reponse_succes('Utilisateur mis à jour avec succès', {'user': serializer.data})

    def destroy(self, request, *args, **kwargs):
        utilisateur = self.get_object()
        if utilisateur.pk == request.user.pk:
            return reponse_erreur('Self Deletion Not Allowed', 'Vous ne pouvez pas supprimer votre propre compte')

        if utilisateur.role == 'admin' and utilisateur.is_active:
            if Utilisateur.objects.filter(role='admin', is_active=True).count() <= 1:
                return reponse_erreur('User Deletion Failed', 'Impossible de supprimer le dernier administrateur')

        email = utilisateur.email
        utilisateur.delete()
        journaliser(request.user, 'USER_DELETE', 'user', kwargs.get('pk'), {'email': email}, request)
        logger.info(f"Utilisateur {email} supprimé par {request.user.email}")
        return reponse_succes('Utilisateur supprimé avec succès')

    @action(detail=False, methods=['get'])
    def stats(self, request):
        """Statistiques globales des comptes"""
        total = Utilisateur.objects.count()
        actifs = Utilisateur.objects.filter(is_active=True).count()
        repartition = {
            ligne['role']: ligne['total']
            for ligne in Utilisateur.objects.values('role').annotate(total=Count('id'))
        }
        return reponse_succes('Statistiques récupérées avec succès', {'stats': {
            'total_users': total,
            'active_users': actifs,
            'inactive_users': total - actifs,
            'role_distribution': repartition,
        }})

    @action(detail=False, methods=['put'], url_path='bulk-update')
    def bulk_update(self, request):
        """Mise à jour en lot, les erreurs sont collectées par utilisateur"""
        serializer = MiseAJourGroupeeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        ids = serializer.validated_data['user_ids']
        donnees = serializer.validated_data['update_data']

        if request.user.pk in ids:
            return reponse_erreur(
                'Self Modification Not Allowed',
                'Vous ne pouvez pas vous inclure dans une opération en lot',
            )

        mis_a_jour = []
        erreurs = []
        for user_id in ids:
            utilisateur = Utilisateur.objects.filter(pk=user_id).first()
            if utilisateur is None:
                erreurs.append({'user_id': user_id, 'error': 'Utilisateur non trouvé'})
                continue
            serializer_utilisateur = UtilisateurSerializer(utilisateur, data=donnees, partial=True)
            if not serializer_utilisateur.is_valid():
                erreurs.append({'user_id': user_id, 'error': serializer_utilisateur.errors})
                continue
            serializer_utilisateur.save()
            mis_a_jour.append(serializer_utilisateur.data)

        logger.info(f"Mise à jour en lot par {request.user.email}: {len(mis_a_jour)} succès, {len(erreurs)} erreur(s)")
        data = {'updated': mis_a_jour}
        if erreurs:
            data['errors'] = erreurs
        return reponse_succes(f"{len(mis_a_jour)} utilisateur(s) mis à jour avec succès", data)

    @action(detail=True, methods=['patch'], url_path='toggle-status')
    def toggle_status(self, request, pk=None):
        utilisateur = self.get_object()
        if utilisateur.pk == request.user.pk:
            return reponse_erreur('Self Deactivation Not Allowed', 'Vous ne pouvez pas désactiver votre propre compte')

        utilisateur.is_active = not utilisateur.is_active
        if not utilisateur.is_active:
            utilisateur.token_version += 1
        utilisateur.save(update_fields=['is_active', 'token_version', 'date_modification'])
        journaliser(request.user, 'USER_UPDATE', 'user', utilisateur.pk, {'is_active': utilisateur.is_active}, request)

        etat = 'activé' if utilisateur.is_active else 'désactivé'
        return reponse_succes(f"Utilisateur {etat} avec succès", {'user': UtilisateurSerializer(utilisateur).data})
