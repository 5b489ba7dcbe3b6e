"""
Test configuration and fixtures for chat tests.

This module provides:
- Profile fixtures (group admin, members, outsider, platform admin)
- Group fixtures
- API client helpers for authenticated requests
- Realtime fixtures: a hub wired to RecordingTransport and
  InMemoryChatStore, and a helper to drive its coroutines

Usage:
    def test_example(hub, run):
        run(hub.lifecycle.register, "1111", "handle-1")
        assert hub.registry.lookup("1111") == "handle-1"
"""

import pytest
from asgiref.sync import async_to_sync
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from accounts.tests.factories import AdminUserFactory, UserFactory
from chat.realtime.background import BackgroundTasks
from chat.realtime.hub import RealtimeHub, reset_hub
from chat.realtime.registry import PresenceRegistry
from chat.tests.factories import GroupFactory
from chat.tests.fakes import InMemoryChatStore, RecordingTransport


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def alice(db):
    return UserFactory(display_name="Alice")


@pytest.fixture
def bob(db):
    return UserFactory(display_name="Bob")


@pytest.fixture
def carol(db):
    return UserFactory(display_name="Carol")


@pytest.fixture
def outsider(db):
    """A profile that belongs to no test group."""
    return UserFactory(display_name="Outsider")


@pytest.fixture
def platform_admin(db):
    return AdminUserFactory()


# =============================================================================
# Group Fixtures
# =============================================================================


@pytest.fixture
def group(alice, bob, carol):
    """Alice is the admin; Bob and Carol are members."""
    return GroupFactory(name="Climbing", admin=alice, members=[bob, carol])


# =============================================================================
# API Client Fixtures
# =============================================================================


def client_for(user) -> APIClient:
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client


@pytest.fixture
def alice_client(alice):
    return client_for(alice)


@pytest.fixture
def bob_client(bob):
    return client_for(bob)


@pytest.fixture
def carol_client(carol):
    return client_for(carol)


@pytest.fixture
def outsider_client(outsider):
    return client_for(outsider)


@pytest.fixture
def admin_client(platform_admin):
    return client_for(platform_admin)


# =============================================================================
# Realtime Fixtures
# =============================================================================


@pytest.fixture
def run():
    """
    Run a coroutine function to completion from a sync test.

    Usage:
        outcome = run(hub.signaling.call_user, event, "handle-1")
    """

    def _run(func, *args, **kwargs):
        return async_to_sync(func)(*args, **kwargs)

    return _run


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def store():
    """In-memory store with users 1111, 2222, 3333 and no contacts."""
    store = InMemoryChatStore()
    for code in ("1111", "2222", "3333"):
        store.add_user(code)
    return store


@pytest.fixture
def hub(transport, store):
    """A standalone hub over the recording transport and in-memory store."""
    return RealtimeHub(
        registry=PresenceRegistry(),
        transport=transport,
        store=store,
        tasks=BackgroundTasks(),
    )


@pytest.fixture
def recording_hub(transport):
    """
    Install a process hub whose transport records deliveries.

    Used by view tests: REST handlers notify through get_hub().
    """
    return reset_hub(transport=transport)
