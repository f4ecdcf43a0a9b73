# utilisateurs/urls.py
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import AuthViewSet, UtilisateurViewSet

router = DefaultRouter()
router.register('auth', AuthViewSet, basename='auth')
router.register('users', UtilisateurViewSet, basename='utilisateur')

urlpatterns = [
    path('', include(router.urls)),
]
