from django.contrib.auth.forms import AdminUserCreationForm, UserChangeForm
from .models import CustomUser


_PROFILE_FIELDS = (
    "email",
    "username",
    "first_name",
    "last_name",
    "phone",
    "role",
    "section_type",
)


class CustomUserCreationForm(AdminUserCreationForm):

    class Meta:
        model = CustomUser
        fields = _PROFILE_FIELDS


class CustomUserChangeForm(UserChangeForm):

    class Meta:
        model = CustomUser
        fields = _PROFILE_FIELDS
