import django_filters

from .models import Utilisateur


class UtilisateurFilter(django_filters.FilterSet):
    role = django_filters.ChoiceFilter(choices=Utilisateur.ROLE_CHOICES)
    is_active = django_filters.BooleanFilter()

    class Meta:
        model = Utilisateur
        fields = ['role', 'is_active']
