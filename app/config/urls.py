"""
URL configuration for the chat backend.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/auth/token/refresh/    - Refresh a JWT access token
    /api/v1/users/                 - Profiles, contacts and contact requests
        (POST)                     - Create profile
        by-device/{device_id}/     - Restore device-bound profile
        {code}/restore/            - Restore profile by code (+ password)
        me/                        - Current profile (GET/PATCH)
        me/password/               - Set profile password
        me/last-used/              - Touch last-used timestamp
        me/contacts/               - Contact list, remove contact
        me/requests/               - Incoming requests, send/accept/decline
        me/pending/                - Outgoing requests, cancel
        me/groups/                 - Groups the user belongs to
        {code}/                    - Public profile
    /api/v1/admin/users/           - Platform admin: list/delete/cleanup users
    /api/v1/chat/                  - Chat endpoints
        groups/                    - Create group
        groups/{code}/             - Group detail/settings
        groups/{code}/join|leave|kick|mute/
        groups/{code}/messages/    - Group history
        messages/direct/{code}/    - Direct history with another user
        messages/{id}/             - Edit/delete a message
        admin/groups/{code}/       - Platform admin: delete group
        admin/groups/{code}/ban/   - Platform admin: ban from group
    ws/realtime/                   - Live endpoint (see chat.routing)

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView
from rest_framework_simplejwt.views import TokenRefreshView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
api_v1_patterns = [
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("", include("accounts.urls")),
    path("chat/", include("chat.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Chat Admin"
admin.site.site_title = "Chat Admin Portal"
admin.site.index_title = "Profiles, groups and messages"
