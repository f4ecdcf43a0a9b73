# utilisateurs/admin.py
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from .models import Utilisateur


@admin.register(Utilisateur)
class UtilisateurAdmin(UserAdmin):
    list_display = ('email', 'prenom', 'nom', 'role', 'filiere', 'niveau', 'is_active', 'date_creation')
    list_filter = ('role', 'is_active', 'niveau')
    search_fields = ('email', 'prenom', 'nom')
    ordering = ('-date_creation',)
    readonly_fields = ('date_creation', 'date_modification', 'last_login', 'token_version')

    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('Informations personnelles', {'fields': ('prenom', 'nom', 'role')}),
        ('Rattachement académique', {'fields': ('filiere', 'niveau')}),
        ('Paramètres compte', {'fields': ('is_active', 'is_staff', 'is_superuser', 'token_version')}),
        ('Dates importantes', {'fields': ('date_creation', 'date_modification', 'last_login')}),
        ('Permissions', {'fields': ('groups', 'user_permissions'), 'classes': ('collapse',)}),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'prenom', 'nom', 'role', 'filiere', 'niveau', 'password1', 'password2'),
        }),
    )
