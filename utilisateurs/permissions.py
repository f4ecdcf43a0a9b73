from rest_framework.permissions import BasePermission


class EstAdmin(BasePermission):
    message = 'Accès réservé aux administrateurs'

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.role == 'admin')


class EstProfesseurOuAdmin(BasePermission):
    message = 'Accès réservé aux professeurs et administrateurs'

    def has_permission(self, request, view):
        return bool(
            request.user and request.user.is_authenticated
            and request.user.role in ('professeur', 'admin')
        )


class EstProprietaireOuAdmin(BasePermission):
    """L'objet est l'utilisateur lui-même, ou l'appelant est administrateur"""
    message = 'Vous ne pouvez accéder qu\'à votre propre compte'

    def has_object_permission(self, request, view, obj):
        return request.user.role == 'admin' or obj.pk == request.user.pk
