"""
URL configuration for accounts.

Mounted at /api/v1/ by config/urls.py. The fixed `users/me/...` routes
come before `users/<code>/` so that "me" is never read as a code.
"""

from django.urls import path

from accounts import views

app_name = "accounts"

urlpatterns = [
    # Profile creation and restore (anonymous)
    path("users/", views.ProfileCreateView.as_view(), name="user-create"),
    path(
        "users/by-device/<str:device_id>/",
        views.DeviceRestoreView.as_view(),
        name="user-by-device",
    ),
    # Own profile
    path("users/me/", views.MeView.as_view(), name="me"),
    path("users/me/password/", views.PasswordView.as_view(), name="me-password"),
    path("users/me/last-used/", views.LastUsedView.as_view(), name="me-last-used"),
    path("users/me/groups/", views.MyGroupsView.as_view(), name="me-groups"),
    # Contacts
    path("users/me/contacts/", views.ContactListView.as_view(), name="contact-list"),
    path(
        "users/me/contacts/<str:code>/",
        views.ContactDetailView.as_view(),
        name="contact-detail",
    ),
    path("users/me/requests/", views.RequestListView.as_view(), name="request-list"),
    path(
        "users/me/requests/<str:code>/accept/",
        views.RequestAcceptView.as_view(),
        name="request-accept",
    ),
    path(
        "users/me/requests/<str:code>/decline/",
        views.RequestDeclineView.as_view(),
        name="request-decline",
    ),
    path("users/me/pending/", views.PendingListView.as_view(), name="pending-list"),
    path(
        "users/me/pending/<str:code>/",
        views.PendingDetailView.as_view(),
        name="pending-detail",
    ),
    # Other profiles
    path("users/<str:code>/", views.UserDetailView.as_view(), name="user-detail"),
    path("users/<str:code>/restore/", views.RestoreView.as_view(), name="user-restore"),
    # Admin
    path("admin/users/", views.AdminUserListView.as_view(), name="admin-user-list"),
    path("admin/users/cleanup/", views.AdminCleanupView.as_view(), name="admin-user-cleanup"),
    path(
        "admin/users/<str:code>/",
        views.AdminUserDeleteView.as_view(),
        name="admin-user-delete",
    ),
]
