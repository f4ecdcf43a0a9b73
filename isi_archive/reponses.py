from rest_framework import status
from rest_framework.response import Response


def reponse_succes(message, data=None, statut=status.HTTP_200_OK):
    contenu = {'success': True, 'message': message}
    if data is not None:
        contenu['data'] = data
    return Response(contenu, status=statut)


def reponse_erreur(erreur, message, statut=status.HTTP_400_BAD_REQUEST):
    return Response({'success': False, 'error': erreur, 'message': message}, status=statut)
