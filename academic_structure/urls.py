# academic_structure/urls.py
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import NiveauViewSet, FiliereViewSet, MatiereViewSet, ProfesseurViewSet

router = DefaultRouter()
router.register(r'niveaux', NiveauViewSet, basename='niveau')
router.register(r'filieres', FiliereViewSet, basename='filiere')
router.register(r'matieres', MatiereViewSet, basename='matiere')
router.register(r'professeurs', ProfesseurViewSet, basename='professeur')

urlpatterns = [
    path('', include(router.urls)),
]
