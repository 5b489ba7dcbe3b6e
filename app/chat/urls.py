"""
URL configuration for chat API.

URL Structure:
    Groups:
        /groups/                          POST
        /groups/{code}/                   GET, PATCH
        /groups/{code}/join/              POST
        /groups/{code}/leave/             POST
        /groups/{code}/kick/              POST
        /groups/{code}/mute/              POST
        /groups/{code}/messages/          GET

    Messages:
        /messages/direct/{code}/          GET
        /messages/{id}/                   PATCH, DELETE

    Admin:
        /admin/groups/{code}/             DELETE
        /admin/groups/{code}/ban/         POST

All URLs are prefixed with /api/v1/chat/ in the main URL configuration.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from chat.views import (
    AdminGroupBanView,
    AdminGroupDeleteView,
    DirectHistoryView,
    GroupViewSet,
    MessageDetailView,
)

app_name = "chat"

router = DefaultRouter()
router.register(r"groups", GroupViewSet, basename="group")

urlpatterns = [
    path("", include(router.urls)),
    path(
        "messages/direct/<str:code>/",
        DirectHistoryView.as_view(),
        name="direct-history",
    ),
    path(
        "messages/<int:message_id>/",
        MessageDetailView.as_view(),
        name="message-detail",
    ),
    path(
        "admin/groups/<str:code>/",
        AdminGroupDeleteView.as_view(),
        name="admin-group-delete",
    ),
    path(
        "admin/groups/<str:code>/ban/",
        AdminGroupBanView.as_view(),
        name="admin-group-ban",
    ),
]
