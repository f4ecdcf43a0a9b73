# documents/admin.py
from django.contrib import admin
from .models import Document, DocumentMatiere, DocumentPFE


class DocumentMatiereInline(admin.TabularInline):
    model = DocumentMatiere
    extra = 0


class DocumentPFEInline(admin.StackedInline):
    model = DocumentPFE
    extra = 0


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ('titre', 'categorie', 'telecharge_par', 'taille_fichier', 'download_count', 'view_count', 'is_deleted', 'date_creation')
    list_filter = ('categorie', 'is_deleted', 'type_mime')
    search_fields = ('titre', 'description', 'nom_fichier')
    readonly_fields = ('chemin_fichier', 'taille_fichier', 'type_mime', 'download_count', 'view_count', 'date_creation', 'date_modification')
    ordering = ['-date_creation']
    inlines = [DocumentMatiereInline, DocumentPFEInline]
