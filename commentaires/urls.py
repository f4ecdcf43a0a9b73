# commentaires/urls.py
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import CommentairesDocumentView, CommentaireViewSet

router = DefaultRouter()
router.register('documents/comments', CommentaireViewSet, basename='commentaire')

urlpatterns = [
    path('documents/<int:document_id>/comments/', CommentairesDocumentView.as_view(), name='commentaires-document'),
    path('', include(router.urls)),
]
