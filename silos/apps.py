from django.apps import AppConfig


class SilosConfig(AppConfig):
    """Configuration for the silos Django app."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'silos'
    verbose_name = 'Content silos'
