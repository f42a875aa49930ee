from django.utils import timezone
from rest_framework import exceptions
from rest_framework.authentication import TokenAuthentication

from accounts.models import UserSession


class UserSessionAuthentication(TokenAuthentication):
    """
    Resolve an ``Authorization: Token <key>`` header to the user behind a
    per-login UserSession. Every route in the schooling API sits behind this
    gate; role checks happen afterwards in ``schooling.api.permissions``.
    """

    keyword = "Token"
    model = UserSession

    def authenticate_credentials(self, key):
        try:
            session = self.model.objects.select_related("user").get(key=key)
        except self.model.DoesNotExist:
            raise exceptions.AuthenticationFailed("Invalid token.")

        if session.revoked_at is not None:
            raise exceptions.AuthenticationFailed("Session revoked.")
        user = session.user
        if not user.is_active:
            raise exceptions.AuthenticationFailed("User not found or inactive.")

        session.last_seen = timezone.now()
        session.save(update_fields=["last_seen"])
        return (user, session)
