# commentaires/admin.py
from django.contrib import admin
from .models import Commentaire


@admin.register(Commentaire)
class CommentaireAdmin(admin.ModelAdmin):
    list_display = ('auteur', 'document', 'parent', 'is_edited', 'is_deleted', 'date_creation')
    list_filter = ('is_deleted', 'is_edited')
    search_fields = ('contenu', 'auteur__email')
    ordering = ['-date_creation']
