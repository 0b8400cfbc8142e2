from django.apps import AppConfig


class CoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'core'
    verbose_name = 'BookVerse core'

    def ready(self):
        # Register rating signal receivers
        from . import signals  # noqa: F401
