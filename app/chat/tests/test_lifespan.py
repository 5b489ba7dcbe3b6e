"""
Tests for PresenceLifespan, the ASGI lifespan hooks.
"""

import pytest

from accounts.models import User
from chat.realtime.hub import get_hub
from chat.realtime.lifespan import PresenceLifespan

pytestmark = pytest.mark.django_db(transaction=True)


def drive(run, *message_types):
    """Feed lifespan messages to the app and collect what it sends back."""
    incoming = [{"type": t} for t in message_types]
    sent = []

    async def receive():
        return incoming.pop(0)

    async def send(message):
        sent.append(message["type"])

    run(PresenceLifespan(), {"type": "lifespan"}, receive, send)
    return sent


class TestPresenceLifespan:
    def test_startup_clears_stale_online_flags(self, alice, bob, run):
        User.objects.update(is_online=True)

        sent = drive(run, "lifespan.startup", "lifespan.shutdown")

        assert sent == ["lifespan.startup.complete", "lifespan.shutdown.complete"]
        assert not User.objects.filter(is_online=True).exists()

    def test_shutdown_marks_live_identities_offline(self, alice, run):
        User.objects.filter(pk=alice.pk).update(is_online=True)
        get_hub().registry.bind(alice.code, "handle-a")

        drive(run, "lifespan.shutdown")

        alice.refresh_from_db()
        assert alice.is_online is False
        assert len(get_hub().registry) == 0

    def test_startup_failure_reported(self, mocker, run):
        mocker.patch(
            "accounts.services.UserService.reset_presence",
            side_effect=RuntimeError("db down"),
        )

        assert drive(run, "lifespan.startup") == ["lifespan.startup.failed"]
