from rest_framework import permissions


class HasRole(permissions.BasePermission):
    """
    Allow authenticated users whose role is in ``allowed_roles``.
    Super admins pass every role check.
    """

    allowed_roles: tuple = ()
    message = "Access denied. Insufficient permissions."

    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not (user and user.is_authenticated):
            return False
        if getattr(user, "is_super_admin", False):
            return True
        return getattr(user, "role", "") in self.allowed_roles


def role_required(*roles):
    """Build a HasRole permission class bound to the given roles."""
    return type("HasRole", (HasRole,), {"allowed_roles": tuple(roles)})


class HasSectionAccess(permissions.BasePermission):
    """
    Allow users assigned to ``section`` (or to both sections).
    """

    section = ""
    message = "Access denied. You do not have access to this section."

    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not (user and user.is_authenticated):
            return False
        check = getattr(user, "has_section_access", None)
        return bool(check and check(self.section))


def section_access_required(section):
    return type("HasSectionAccess", (HasSectionAccess,), {"section": section})
