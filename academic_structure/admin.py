# academic_structure/admin.py
from django.contrib import admin
from .models import Niveau, Filiere, Semestre, Matiere, ProfesseurMatiere


class SemestreInline(admin.TabularInline):
    model = Semestre
    extra = 0


@admin.register(Niveau)
class NiveauAdmin(admin.ModelAdmin):
    list_display = ('nom', 'type', 'ordre', 'nombre_filieres')
    list_editable = ('ordre',)
    ordering = ('ordre',)
    inlines = [SemestreInline]

    def nombre_filieres(self, obj):
        return obj.filieres.filter(is_deleted=False).count()
    nombre_filieres.short_description = "Nb filières"


@admin.register(Filiere)
class FiliereAdmin(admin.ModelAdmin):
    list_display = ('code', 'nom', 'niveau', 'is_deleted', 'nombre_matieres')
    list_filter = ('niveau', 'is_deleted')
    search_fields = ('code', 'nom')
    ordering = ('niveau__ordre', 'code')

    def nombre_matieres(self, obj):
        return obj.matieres.filter(is_deleted=False).count()
    nombre_matieres.short_description = "Nb matières"


class ProfesseurMatiereInline(admin.TabularInline):
    model = ProfesseurMatiere
    extra = 0
    autocomplete_fields = ('professeur',)


@admin.register(Matiere)
class MatiereAdmin(admin.ModelAdmin):
    list_display = ('code', 'nom', 'filiere', 'semestre', 'is_deleted')
    list_filter = ('filiere__niveau', 'semestre__nom', 'is_deleted')
    search_fields = ('code', 'nom')
    ordering = ('filiere__code', 'code')
    inlines = [ProfesseurMatiereInline]
