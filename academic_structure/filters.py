import django_filters

from .models import Filiere, Matiere


class FiliereFilter(django_filters.FilterSet):
    niveau_id = django_filters.NumberFilter(field_name='niveau_id')

    class Meta:
        model = Filiere
        fields = ['niveau_id']


class MatiereFilter(django_filters.FilterSet):
    filiere_id = django_filters.NumberFilter(field_name='filiere_id')
    semestre_id = django_filters.NumberFilter(field_name='semestre_id')
    niveau_id = django_filters.NumberFilter(field_name='filiere__niveau_id')

    class Meta:
        model = Matiere
        fields = ['filiere_id', 'semestre_id', 'niveau_id']
