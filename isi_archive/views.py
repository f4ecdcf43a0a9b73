from django.conf import settings
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def health(request):
    """État du service"""
    return Response({
        'status': 'OK',
        'timestamp': timezone.now().isoformat(),
        'environment': settings.ENVIRONMENT,
    })
