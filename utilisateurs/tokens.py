"""
Jetons JWT (python-jose).

Le jeton d'accès porte l'identité et le rôle, le jeton de rafraîchissement
porte la version de jetons de l'utilisateur : incrémenter
``Utilisateur.token_version`` révoque tous les jetons de rafraîchissement.
"""
from datetime import timedelta

from django.conf import settings
from django.utils import timezone
from jose import JWTError, jwt


class TokenInvalide(Exception):
    pass


def creer_access_token(utilisateur):
    maintenant = timezone.now()
    payload = {
        'sub': str(utilisateur.pk),
        'email': utilisateur.email,
        'role': utilisateur.role,
        'type': 'access',
        'iat': maintenant,
        'exp': maintenant + timedelta(minutes=settings.JWT_ACCESS_EXPIRES_MINUTES),
        'iss': settings.JWT_ISSUER,
        'aud': settings.JWT_AUDIENCE,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def creer_refresh_token(utilisateur):
    maintenant = timezone.now()
    payload = {
        'sub': str(utilisateur.pk),
        'token_version': utilisateur.token_version,
        'type': 'refresh',
        'iat': maintenant,
        'exp': maintenant + timedelta(days=settings.JWT_REFRESH_EXPIRES_DAYS),
        'iss': settings.JWT_ISSUER,
        'aud': settings.JWT_AUDIENCE,
    }
    return jwt.encode(payload, settings.JWT_REFRESH_SECRET, algorithm=settings.JWT_ALGORITHM)


def creer_paire_tokens(utilisateur):
    return {
        'access_token': creer_access_token(utilisateur),
        'refresh_token': creer_refresh_token(utilisateur),
    }


def _decoder(token, secret, type_attendu):
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
        )
    except JWTError as e:
        raise TokenInvalide(str(e))
    if payload.get('type') != type_attendu or not payload.get('sub'):
        raise TokenInvalide('Type de token invalide')
    return payload


def decoder_access_token(token):
    return _decoder(token, settings.JWT_SECRET, 'access')


def decoder_refresh_token(token):
    return _decoder(token, settings.JWT_REFRESH_SECRET, 'refresh')
