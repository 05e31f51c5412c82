from rest_framework.permissions import BasePermission

from .users.models import user_has_admin_role

# ------------------------------------------------------------
# Ein einziger Guard für alle Admin-Routen. Nicht angemeldete
# Benutzer bekommen 401, angemeldete ohne ADMIN-Rolle 403.
# ------------------------------------------------------------


class IsPlatformAdmin(BasePermission):
    """Erlaubt Zugriff nur für Benutzer mit der Rolle ADMIN."""

    message = "Admin access required"

    def has_permission(self, request, view):
        return user_has_admin_role(request.user)


class IsStudent(BasePermission):
    """Jeder angemeldete Benutzer darf die Studenten-Routen nutzen."""

    message = "Unauthorized"

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated)
