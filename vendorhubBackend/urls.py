"""
URL configuration for vendorhubBackend project.

Marketplace operations are exposed as services, Celery tasks and management
commands; only the admin site and the Prometheus scrape endpoint are routed.
"""

from django.contrib import admin
from django.urls import path

from marketplace.infra.observability.views import metrics_view


urlpatterns = [
    path("admin/", admin.site.urls),
    path("metrics/", metrics_view, name="prometheus-metrics"),
]
