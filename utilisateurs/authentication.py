import logging

from rest_framework import exceptions
from rest_framework.authentication import BaseAuthentication, get_authorization_header

from .models import Utilisateur
from .tokens import TokenInvalide, decoder_access_token

logger = logging.getLogger(__name__)


class JWTAuthentication(BaseAuthentication):
    """Authentification par en-tête ``Authorization: Bearer <token>``"""
    keyword = 'Bearer'

    def authenticate(self, request):
        auth = get_authorization_header(request).split()
        if not auth or auth[0].lower() != self.keyword.lower().encode():
            return None

        if len(auth) != 2:
            raise exceptions.AuthenticationFailed('En-tête d\'autorisation invalide')

        try:
            token = auth[1].decode()
        except UnicodeError:
            raise exceptions.AuthenticationFailed('Token invalide')

        return self.authenticate_credentials(token)

    def authenticate_credentials(self, token):
        try:
            payload = decoder_access_token(token)
        except TokenInvalide as e:
            logger.warning(f"Token d'accès rejeté: {e}")
            raise exceptions.AuthenticationFailed('Token invalide ou expiré')

        utilisateur = Utilisateur.objects.select_related('filiere', 'niveau').filter(pk=payload['sub']).first()
        if utilisateur is None:
            raise exceptions.AuthenticationFailed('Utilisateur non trouvé')
        if not utilisateur.is_active:
            raise exceptions.AuthenticationFailed('Compte utilisateur désactivé')

        return (utilisateur, token)

    def authenticate_header(self, request):
        return self.keyword
