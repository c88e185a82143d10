from rest_framework.permissions import BasePermission


class IsMessOwner(BasePermission):
    """Authenticated mess owner with a mess profile attached."""

    message = 'Only mess owners can perform this action.'

    def has_permission(self, request, view):
        return (
            request.user.is_authenticated and
            request.user.role == 'mess-owner' and
            hasattr(request.user, 'mess_profile')
        )


class IsPlatformAdmin(BasePermission):
    message = 'Admin access required.'

    def has_permission(self, request, view):
        return (
            request.user.is_authenticated and
            request.user.is_platform_admin
        )


class IsPlatformAdminOrReadOnly(BasePermission):
    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        if request.method in ('GET', 'HEAD', 'OPTIONS'):
            return True
        return request.user.is_platform_admin
