import django_filters
from django.db.models import Q

from .models import Document


class DocumentFilter(django_filters.FilterSet):
    matiere_id = django_filters.NumberFilter(method='filtrer_matiere', error_messages={
        'invalid': 'Identifiant de matière invalide',
    })
    categorie = django_filters.ChoiceFilter(choices=Document.CATEGORIE_CHOICES, error_messages={
        'invalid_choice': 'Catégorie invalide',
    })
    annee_diplome = django_filters.NumberFilter(field_name='pfe__annee_diplome', error_messages={
        'invalid': 'Année de diplôme invalide',
    })
    filiere_diplome = django_filters.CharFilter(field_name='pfe__filiere_diplome', lookup_expr='icontains')

    class Meta:
        model = Document
        fields = ['matiere_id', 'categorie', 'annee_diplome', 'filiere_diplome']

    def filtrer_matiere(self, queryset, name, value):
        # Lien principal ou lien multiple
        return queryset.filter(Q(matieres__id=value) | Q(matiere_id=value)).distinct()
