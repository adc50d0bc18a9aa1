"""
URL configuration for the Ebers clinic backend.

The `urlpatterns` list routes URLs to views.  This module includes
the Django admin, the API and page routes provided by the core app and
the Prometheus exporter.  OpenAPI documentation is exposed at
``/swagger/`` and ``/redoc/``.
"""
from django.contrib import admin
from django.urls import path, include

from rest_framework import permissions
from drf_yasg.views import get_schema_view
from drf_yasg import openapi

# API metadata for Swagger/OpenAPI documentation
api_info = openapi.Info(
    title="Ebers Clinic API",
    default_version='v1',
    description="Consultations, patient search and financial overview for the Ebers clinic app.",
)

schema_view = get_schema_view(
    api_info,
    public=True,
    permission_classes=(permissions.AllowAny,),
)

urlpatterns = [
    # Django admin site (useful for development)
    path('admin/', admin.site.urls),
    # Prometheus exporter (/metrics)
    path('', include('django_prometheus.urls')),
    # Include API and page routes from the core app
    path('', include('core.routers')),
    # Swagger and ReDoc
    path('swagger/', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('redoc/', schema_view.with_ui('redoc', cache_timeout=0), name='schema-redoc'),
]
