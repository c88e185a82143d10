from django.apps import AppConfig


class MessesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.messes'
    label = 'messes'
