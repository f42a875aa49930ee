from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from accounts.adapters import AccountAdapter
from accounts.models import UserSession


class AuthApiTests(TestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        User = get_user_model()
        self.owner = User.objects.create_user(
            username="owner",
            email="owner@example.com",
            password="secret",
            role="owner",
            section_type="school",
        )
        self.trainer = User.objects.create_user(
            username="trainer",
            email="Trainer@Example.com",
            password="secret",
            role="trainer",
        )

    def _login(self, username, password="secret"):
        return self.client.post(
            reverse("api-login"),
            {"username": username, "password": password},
            format="json",
        )

    def test_token_login_returns_role_and_section(self):
        response = self._login("owner")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("token", response.data)
        self.assertEqual(response.data["user"]["role"], "owner")
        self.assertEqual(response.data["user"]["section_type"], "school")
        self.assertTrue(UserSession.objects.filter(key=response.data["token"], user=self.owner).exists())

    def test_token_login_accepts_email_case_insensitively(self):
        response = self._login("trainer@example.com")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["user"]["username"], "trainer")

    def test_token_login_rejects_bad_credentials(self):
        response = self._login("owner", password="wrong")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("Unable to log in", str(response.data))

    def test_token_login_rejects_inactive_user(self):
        self.trainer.is_active = False
        self.trainer.save(update_fields=["is_active"])

        response = self._login("trainer")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_token_authenticates_until_logout(self):
        token = self._login("owner").data["token"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Token {token}")

        me = self.client.get(reverse("api-auth-me"))
        logout = self.client.post(reverse("api-auth-logout"))
        after = self.client.get(reverse("api-auth-me"))

        self.assertEqual(me.status_code, status.HTTP_200_OK)
        self.assertEqual(me.data["username"], "owner")
        self.assertEqual(logout.status_code, status.HTTP_200_OK)
        self.assertEqual(after.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_unknown_token_rejected(self):
        self.client.credentials(HTTP_AUTHORIZATION="Token not-a-real-token")

        response = self.client.get(reverse("api-auth-me"))

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_current_user_requires_auth(self):
        response = self.client.get(reverse("api-auth-me"))

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_current_user_without_role_reports_none(self):
        user = get_user_model().objects.create_user(username="plain", password="secret")
        self.client.force_authenticate(user)

        response = self.client.get(reverse("api-auth-me"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data["role"])

    def test_logout_without_session_token(self):
        self.client.force_authenticate(self.owner)

        response = self.client.post(reverse("api-auth-logout"))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_default_super_admin_exists(self):
        admin = get_user_model().objects.get(username="superadmin")

        self.assertEqual(admin.role, "super_admin")
        self.assertTrue(admin.is_super_admin)
        self.assertTrue(admin.has_section_access("center"))


class AccountAdapterTests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.unassigned = User.objects.create_user(username="nobody", password="secret")
        self.teacher = User.objects.create_user(username="teacher", password="secret", role="school_teacher")

    @patch("allauth.account.adapter.DefaultAccountAdapter.is_login_allowed", return_value=True, create=True)
    def test_unassigned_users_allowed_by_default(self, _mock_allowed):
        self.assertTrue(AccountAdapter().is_login_allowed(self.unassigned))

    @override_settings(BLOCK_UNASSIGNED_USERS=True)
    @patch("allauth.account.adapter.DefaultAccountAdapter.is_login_allowed", return_value=True, create=True)
    def test_unassigned_users_blocked_when_enabled(self, _mock_allowed):
        self.assertFalse(AccountAdapter().is_login_allowed(self.unassigned))
        self.assertTrue(AccountAdapter().is_login_allowed(self.teacher))

    @patch("allauth.account.adapter.DefaultAccountAdapter.is_login_allowed", return_value=False, create=True)
    def test_base_adapter_refusal_wins(self, _mock_allowed):
        self.assertFalse(AccountAdapter().is_login_allowed(self.teacher))
