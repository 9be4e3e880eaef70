"""Django AppConfig for the api app."""

from django.apps import AppConfig


class ApiConfig(AppConfig):
    """JSON HTTP API (views, forms and serializers only; no models)."""

    name = "api"
    verbose_name = "API"
