# isi_archive/exceptions.py
"""
Erreurs métier et mise en forme des erreurs de l'API.

Toutes les réponses d'erreur suivent l'enveloppe
``{"success": false, "error": ..., "message": ...}``.
"""
import logging

from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)

TITRES_ERREURS = {
    status.HTTP_400_BAD_REQUEST: 'Bad Request',
    status.HTTP_401_UNAUTHORIZED: 'Unauthorized',
    status.HTTP_403_FORBIDDEN: 'Accès refusé',
    status.HTTP_404_NOT_FOUND: 'Not Found',
    status.HTTP_405_METHOD_NOT_ALLOWED: 'Method Not Allowed',
    status.HTTP_415_UNSUPPORTED_MEDIA_TYPE: 'Unsupported Media Type',
}


class ErreurMetier(APIException):
    """Refus métier levé par les services, converti en réponse par l'API"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Requête invalide'

    def __init__(self, message, status_code=None, erreur=None):
        super().__init__(detail=message)
        if status_code is not None:
            self.status_code = status_code
        self.erreur = erreur
        self.message = message


def aplatir_erreurs(detail, prefixe=''):
    """Transforme les erreurs DRF imbriquées en liste [{field, message}]"""
    erreurs = []
    if isinstance(detail, dict):
        for champ, valeur in detail.items():
            nom = f"{prefixe}.{champ}" if prefixe else str(champ)
            erreurs.extend(aplatir_erreurs(valeur, nom))
    elif isinstance(detail, list):
        for index, valeur in enumerate(detail):
            if isinstance(valeur, (dict, list)):
                nom = f"{prefixe}.{index}" if prefixe else str(index)
                erreurs.extend(aplatir_erreurs(valeur, nom))
            else:
                erreurs.append({'field': prefixe or 'non_field_errors', 'message': str(valeur)})
    else:
        erreurs.append({'field': prefixe or 'non_field_errors', 'message': str(detail)})
    return erreurs


def gestionnaire_exceptions(exc, context):
    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, ValidationError):
        response.data = {
            'success': False,
            'error': 'Validation Error',
            'message': 'Données invalides',
            'details': aplatir_erreurs(exc.detail),
        }
        return response

    if isinstance(exc, ErreurMetier):
        erreur = exc.erreur or TITRES_ERREURS.get(response.status_code, 'Erreur')
        message = exc.message
    else:
        erreur = TITRES_ERREURS.get(response.status_code, 'Erreur')
        message = response.data.get('detail', '') if isinstance(response.data, dict) else response.data

    if response.status_code >= 500:
        logger.error(f"Erreur serveur dans {context.get('view').__class__.__name__}: {message}")

    response.data = {
        'success': False,
        'error': erreur,
        'message': str(message),
    }
    return response
