# audit/admin.py
from django.contrib import admin
from .models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ('action', 'utilisateur', 'ressource', 'ressource_id', 'adresse_ip', 'date_creation')
    list_filter = ('action', 'ressource')
    search_fields = ('utilisateur__email', 'ressource', 'ressource_id')
    readonly_fields = [f.name for f in AuditLog._meta.fields]
    ordering = ['-date_creation']

    def has_add_permission(self, request):
        return False
