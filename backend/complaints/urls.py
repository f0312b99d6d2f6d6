"""
Complaints app URL configuration.

Registered in ``backend/urls.py`` under ``api/``.

Endpoint summary
----------------
GET  /api/complaints/                            — scoped list
GET  /api/complaints/{id}/                       — detail
GET  /api/complaints/{id}/role-context/          — caller's capabilities
GET  /api/complaints/{id}/status-log/            — status history
POST /api/complaints/{id}/status/                — change status
GET  /api/complaints/{id}/transfers/             — transfer history
POST /api/complaints/{id}/transfers/             — initiate transfer
GET  /api/complaints/{id}/transfers/pending/     — pending transfer (204 if none)
GET  /api/complaints/{id}/communications/        — thread
POST /api/complaints/{id}/communications/        — post to thread
GET  /api/transfers/incoming/                    — my unit's inbox
GET  /api/transfers/stats/                       — statistics (admins)
GET  /api/transfers/{id}/                        — transfer detail
POST /api/transfers/{id}/accept/                 — accept
POST /api/transfers/{id}/reject/                 — reject
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import ComplaintViewSet, TransferViewSet

router = DefaultRouter()
router.register(r"complaints", ComplaintViewSet, basename="complaint")
router.register(r"transfers", TransferViewSet, basename="transfer")

urlpatterns = [
    path("", include(router.urls)),
]
