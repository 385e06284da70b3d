from django.apps import AppConfig


class ClipsConfig(AppConfig):
    name = 'clips'
    default_auto_field = 'django.db.models.BigAutoField'

    def ready(self):
        """Import signals when the app is ready"""
        import clips.signals  # noqa: F401
