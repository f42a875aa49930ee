import logging

from allauth.account.adapter import DefaultAccountAdapter
from django.conf import settings

logger = logging.getLogger(__name__)


class AccountAdapter(DefaultAccountAdapter):
    def is_login_allowed(self, user):
        if not super().is_login_allowed(user):
            return False

        if not getattr(settings, "BLOCK_UNASSIGNED_USERS", False):
            return True

        if user.is_superuser or getattr(user, "role", ""):
            return True

        logger.info("Blocked login for user without a role: user_id=%s", user.pk)
        return False
