"""
Custom permission classes for role based access control.
"""
from rest_framework.permissions import BasePermission


def _has_role(request, *roles) -> bool:
    user = getattr(request, "user", None)
    return bool(user and user.is_authenticated and getattr(user, "role", None) in roles)


class IsAdminRole(BasePermission):
    """Allow access only to users with the admin role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, "admin")


class IsDoctorRole(BasePermission):
    """Allow access only to users with the doctor role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, "doctor")


class IsPatientRole(BasePermission):
    """Allow access only to users with the patient role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, "patient")


class IsStaffRole(BasePermission):
    """Doctors and admins."""
    def has_permission(self, request, view) -> bool:
        return _has_role(request, "doctor", "admin")
