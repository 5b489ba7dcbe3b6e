"""
Test configuration and fixtures for account tests.

This module provides:
- Profile fixtures (plain, password-protected, platform admin)
- Contact graph fixtures
- API client helpers for authenticated requests
- A hub whose transport records deliveries, for notification checks

Usage:
    def test_example(user, authenticated_client):
        response = authenticated_client.get('/api/v1/users/me/')
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from accounts.tests.factories import AdminUserFactory, UserFactory
from chat.realtime.hub import reset_hub
from chat.tests.fakes import RecordingTransport


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def user(db):
    """Create a basic profile without a password."""
    return UserFactory(display_name="Ada")


@pytest.fixture
def other_user(db):
    """Create another profile for contact tests."""
    return UserFactory(display_name="Grace")


@pytest.fixture
def third_user(db):
    return UserFactory(display_name="Linus")


@pytest.fixture
def protected_user(db):
    """Create a profile with a password."""
    return UserFactory(display_name="Locked", password="s3cret")


@pytest.fixture
def admin_user(db):
    """Create a platform admin."""
    return AdminUserFactory()


@pytest.fixture
def contacts(user, other_user):
    """Make `user` and `other_user` contacts of each other."""
    user.contacts.add(other_user)
    return user, other_user


@pytest.fixture
def pending_request(user, other_user):
    """`user` has sent a contact request to `other_user`."""
    user.pending.add(other_user)
    return user, other_user


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()


def client_for(user) -> APIClient:
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client


@pytest.fixture
def authenticated_client(user):
    """API client authenticated as `user` via JWT."""
    return client_for(user)


@pytest.fixture
def other_client(other_user):
    return client_for(other_user)


@pytest.fixture
def admin_client(admin_user):
    return client_for(admin_user)


# =============================================================================
# Realtime Fixtures
# =============================================================================


@pytest.fixture
def transport():
    """
    Install a hub whose deliveries are recorded instead of sent.

    Bind identities with `transport.hub.registry.bind(code, handle)` to
    make them reachable.
    """
    recorder = RecordingTransport()
    recorder.hub = reset_hub(transport=recorder)
    return recorder
