from django.apps import AppConfig


class GenxConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'genx'

    def ready(self):
        """Import signal handlers when app is ready."""
        import genx.signals  # noqa: F401 - Register bootstrap signal handlers
