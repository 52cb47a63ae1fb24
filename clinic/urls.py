"""
URL configuration for the clinic backend project.

The versioned API lives under ``/api/v1/`` (see ``scheduling.routers``).
OpenAPI documentation is exposed at ``/swagger/`` and ``/redoc/`` and
Prometheus metrics at ``/metrics``.
"""
from django.contrib import admin
from django.urls import path, include

from rest_framework import permissions
from drf_yasg.views import get_schema_view
from drf_yasg import openapi

from scheduling.views import health

# API metadata for Swagger/OpenAPI documentation
api_info = openapi.Info(
    title="Clinic API",
    default_version='v1',
    description="Patients, medics, schedules and appointments for a single clinic.",
)

schema_view = get_schema_view(
    api_info,
    public=True,
    permission_classes=(permissions.AllowAny,),
)

urlpatterns = [
    path('admin/', admin.site.urls),
    path('healthz', health.healthz),
    path('', include('django_prometheus.urls')),
    path('api/v1/', include('scheduling.routers')),
    # Swagger and ReDoc
    path('swagger/', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('redoc/', schema_view.with_ui('redoc', cache_timeout=0), name='schema-redoc'),
]
