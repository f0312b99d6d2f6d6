"""
Core app URL configuration.

Registered in ``backend/urls.py`` under ``api/core/``.

Endpoint summary
----------------
GET  /api/core/constants/                 — choice enumerations and field limits
GET  /api/core/notifications/             — caller's notifications (``?unread=true``)
POST /api/core/notifications/{id}/read/   — mark one as read
POST /api/core/notifications/read-all/    — mark every unread one as read
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import NotificationViewSet, SystemConstantsView

app_name = "core"

router = DefaultRouter()
router.register(r"notifications", NotificationViewSet, basename="notification")

urlpatterns = [
    path("constants/", SystemConstantsView.as_view(), name="system-constants"),
    path("", include(router.urls)),
]
