"""Accounts API permissions.

Login is open to anyone; every management endpoint requires an admin account
(role Admin or a staff flag).
"""

from rest_framework.permissions import AllowAny, BasePermission


class AllowedAnyLogin(AllowAny):
    """Explicit alias for login endpoints (semantics: allow any)."""
    pass


class IsAdminAccount(BasePermission):
    """Grant access only to authenticated admin accounts."""

    message = "Only admin accounts may manage dashboard resources."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and getattr(user, "is_admin", False))
