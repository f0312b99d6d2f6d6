"""
Departments app URL configuration.

Registered in ``backend/urls.py`` under ``api/``::

    GET  /api/departments/
    GET  /api/departments/{id}/
    GET  /api/departments/transfer-targets/
    GET  /api/connections/
    POST /api/connections/
    POST /api/connections/{id}/deactivate/
    POST /api/connections/{id}/reactivate/
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import ConnectionViewSet, DepartmentViewSet

router = DefaultRouter()
router.register(r"departments", DepartmentViewSet, basename="department")
router.register(r"connections", ConnectionViewSet, basename="connection")

urlpatterns = [
    path("", include(router.urls)),
]
