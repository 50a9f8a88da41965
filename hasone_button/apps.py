from django.apps import AppConfig


class HasOneButtonConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "hasone_button"
    verbose_name = "Botones de relación has-one"
