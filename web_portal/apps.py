from django.apps import AppConfig


class WebPortalConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "web_portal"
    verbose_name = "Web Portal"
