from django.contrib.auth.hashers import make_password
from django.db import migrations


DEFAULT_USERNAME = "superadmin"
DEFAULT_EMAIL = "superadmin@example.com"
DEFAULT_PASSWORD = "change-me-superadmin"


def create_default_admin(apps, _schema_editor):
    User = apps.get_model("accounts", "CustomUser")
    User.objects.get_or_create(
        username=DEFAULT_USERNAME,
        defaults={
            "email": DEFAULT_EMAIL,
            "role": "super_admin",
            "is_staff": True,
            "is_superuser": True,
            "is_active": True,
            "password": make_password(DEFAULT_PASSWORD),
        },
    )


def remove_default_admin(apps, _schema_editor):
    User = apps.get_model("accounts", "CustomUser")
    User.objects.filter(username=DEFAULT_USERNAME, email=DEFAULT_EMAIL).delete()


class Migration(migrations.Migration):

    dependencies = [
        ("accounts", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(create_default_admin, remove_default_admin),
    ]
