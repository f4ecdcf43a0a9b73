# corbeille/urls.py
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import CorbeilleViewSet

router = DefaultRouter()
router.register('', CorbeilleViewSet, basename='corbeille')

urlpatterns = [
    path('', include(router.urls)),
]
