from rest_framework.throttling import UserRateThrottle


class SuperAdminBypassUserRateThrottle(UserRateThrottle):
    """
    Skip user-level throttling for super admins and Django superusers so bulk
    maintenance (e.g., re-importing every class) is not rate limited, while
    keeping limits for everyone else.
    """

    def allow_request(self, request, view):
        user = getattr(request, "user", None)
        if user and user.is_authenticated and (
            getattr(user, "is_super_admin", False) or user.is_superuser
        ):
            return True
        return super().allow_request(request, view)
