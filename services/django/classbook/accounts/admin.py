from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .forms import CustomUserCreationForm, CustomUserChangeForm
from .models import CustomUser, UserSession


class CustomUserAdmin(UserAdmin):
    add_form = CustomUserCreationForm
    form = CustomUserChangeForm
    model = CustomUser
    list_display = [
        "email",
        "username",
        "role",
        "section_type",
        "phone",
        "is_active",
    ]
    list_filter = ["role", "section_type", "is_active"]
    search_fields = ["email", "username", "phone"]
    fieldsets = UserAdmin.fieldsets + (
        ("Profile", {"fields": ("phone", "role", "section_type")}),
    )
    add_fieldsets = UserAdmin.add_fieldsets + (
        ("Profile", {"fields": ("phone", "role", "section_type")}),
    )


admin.site.register(CustomUser, CustomUserAdmin)


@admin.register(UserSession)
class UserSessionAdmin(admin.ModelAdmin):
    list_display = ["key", "user", "ip_address", "created_at", "last_seen", "revoked_at"]
    list_filter = ["revoked_at", "created_at"]
    search_fields = ["key", "user__email", "user__username", "ip_address"]
    readonly_fields = ["key", "created_at", "last_seen"]
