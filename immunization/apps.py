from django.apps import AppConfig


class ImmunizationConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'immunization'
