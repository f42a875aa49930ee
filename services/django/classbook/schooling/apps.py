from django.apps import AppConfig


class SchoolingConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'schooling'

    def ready(self):
        # Import signal handlers
        from schooling import signals  # noqa: F401
