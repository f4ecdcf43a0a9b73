# utilisateurs/services.py
import logging
import secrets
from datetime import timedelta

from django.conf import settings
from django.core.mail import send_mail
from django.utils import timezone

logger = logging.getLogger(__name__)


def generer_token_reinitialisation():
    return secrets.token_hex(32)


def envoyer_lien_reinitialisation(utilisateur, token):
    lien = f"{settings.FRONTEND_URL}/reset-password?token={token}"
    sujet = "Réinitialisation de votre mot de passe ISI Archive"
    message = (
        f"Bonjour {utilisateur.prenom},\n\n"
        f"Vous avez demandé la réinitialisation de votre mot de passe.\n"
        f"Cliquez sur le lien suivant pour choisir un nouveau mot de passe : {lien}\n\n"
        f"Ce lien expire dans {settings.RESET_TOKEN_EXPIRES_HOURS} heure.\n"
        f"Si vous n'êtes pas à l'origine de cette demande, ignorez cet email."
    )
    send_mail(sujet, message, settings.DEFAULT_FROM_EMAIL, [utilisateur.email])


def demander_reinitialisation(utilisateur):
    """Génère un token de réinitialisation et l'envoie par email"""
    token = generer_token_reinitialisation()
    utilisateur.reset_token = token
    utilisateur.reset_token_expiry = timezone.now() + timedelta(hours=settings.RESET_TOKEN_EXPIRES_HOURS)
    utilisateur.save(update_fields=['reset_token', 'reset_token_expiry', 'date_modification'])
    try:
        envoyer_lien_reinitialisation(utilisateur, token)
    except Exception as e:
        logger.error(f"Erreur lors de l'envoi de l'email de réinitialisation à {utilisateur.email}: {str(e)}")
        raise
    logger.info(f"Lien de réinitialisation envoyé à {utilisateur.email}")
    return token
