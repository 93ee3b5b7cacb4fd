from __future__ import annotations

from rest_framework.permissions import BasePermission

from fotofacil.choices import Role


def get_profile(user):
    """UserProfile do usuário, ou None se não houver."""
    if not getattr(user, "is_authenticated", False):
        return None
    return getattr(user, "fotofacil_profile", None)


class IsManager(BasePermission):
    """Superadmin ou gestor de cluster."""

    message = "Solo gestores pueden realizar esta acción."

    def has_permission(self, request, view) -> bool:
        profile = get_profile(request.user)
        return profile is not None and profile.role in (Role.SUPERADMIN, Role.CLUSTER)


class IsStoreUser(BasePermission):
    """Conta de loja com loja vinculada."""

    message = "Solo cuentas de tienda pueden subir archivos."

    def has_permission(self, request, view) -> bool:
        profile = get_profile(request.user)
        return profile is not None and profile.role == Role.STORE and profile.store_id is not None


class IsParticipant(BasePermission):
    """Gestor ou conta de loja; o alcance por loja é conferido na view."""

    message = "Cuenta sin perfil de FotoFacil."

    def has_permission(self, request, view) -> bool:
        profile = get_profile(request.user)
        if profile is None:
            return False
        return profile.role != Role.STORE or profile.store_id is not None
