"""
Tests for ConnectionLifecycle.

Covers register/disconnect bookkeeping, presence announcements to
reachable contacts, the background durable write, and shutdown.
"""

from chat.realtime.background import BackgroundTasks


class TestRegister:
    def test_register_binds_and_writes_presence(self, hub, store, run):
        async def scenario():
            previous = await hub.lifecycle.register("1111", "h1")
            await hub.tasks.drain()
            return previous

        assert run(scenario) is None
        assert hub.registry.lookup("1111") == "h1"
        assert store.presence["1111"][0] is True

    def test_register_announces_to_reachable_contacts_only(self, hub, store, transport, run):
        """
        presence-changed goes to contacts with a live session.

        Why it matters: offline contacts read presence from the durable
        mirror later; strangers never learn it.
        """
        store.add_user("1111", contacts=["2222", "3333"])
        hub.registry.bind("2222", "h2")
        hub.registry.bind("4444", "h4")

        run(hub.lifecycle.register, "1111", "h1")

        assert transport.handles() == ["h2"]
        payload = transport.payloads_for("h2")[0]
        assert payload["type"] == "presence-changed"
        assert payload["identity"] == "1111"
        assert payload["is_online"] is True
        assert payload["last_seen"]

    def test_duplicate_contacts_are_notified_once(self, hub, store, transport, run):
        store.add_user("1111", contacts=["2222", "2222"])
        hub.registry.bind("2222", "h2")

        run(hub.lifecycle.register, "1111", "h1")

        assert len(transport.payloads_for("h2")) == 1

    def test_reregister_returns_previous_handle(self, hub, run):
        run(hub.lifecycle.register, "1111", "h1")

        assert run(hub.lifecycle.register, "1111", "h2") == "h1"
        assert hub.registry.lookup("1111") == "h2"

    def test_register_on_same_handle_announces_once(self, hub, store, transport, run):
        store.add_user("1111", contacts=["2222"])
        hub.registry.bind("2222", "h2")

        async def scenario():
            await hub.lifecycle.register("1111", "h1")
            previous = await hub.lifecycle.register("1111", "h1")
            await hub.tasks.drain()
            return previous

        assert run(scenario) == "h1"
        assert transport.types_for("h2") == ["presence-changed"]

    def test_failed_presence_write_does_not_block_register(self, hub, store, run):
        store.unavailable = True

        async def scenario():
            await hub.lifecycle.register("1111", "h1")
            await hub.tasks.drain()

        run(scenario)

        assert hub.registry.lookup("1111") == "h1"
        assert "1111" not in store.presence


class TestDisconnect:
    def test_disconnect_unbinds_and_announces_offline(self, hub, store, transport, run):
        store.add_user("1111", contacts=["2222"])
        hub.registry.bind("2222", "h2")

        async def scenario():
            await hub.lifecycle.register("1111", "h1")
            identity = await hub.lifecycle.disconnect("h1")
            await hub.tasks.drain()
            return identity

        assert run(scenario) == "1111"
        assert not hub.registry.is_online("1111")
        assert [p["is_online"] for p in transport.payloads_for("h2")] == [True, False]
        assert store.presence["1111"][0] is False

    def test_disconnect_of_unknown_handle_is_noop(self, hub, transport, run):
        assert run(hub.lifecycle.disconnect, "nope") is None
        assert transport.sent == []

    def test_disconnect_of_superseded_handle_keeps_session(self, hub, store, transport, run):
        store.add_user("1111", contacts=["2222"])
        hub.registry.bind("2222", "h2")

        async def scenario():
            await hub.lifecycle.register("1111", "h1")
            await hub.lifecycle.register("1111", "h1b")
            return await hub.lifecycle.disconnect("h1")

        assert run(scenario) is None
        assert hub.registry.lookup("1111") == "h1b"
        assert all(p["is_online"] for p in transport.payloads_for("h2"))


class TestShutdown:
    def test_shutdown_marks_everyone_offline(self, hub, store, run):
        async def scenario():
            await hub.lifecycle.register("1111", "h1")
            await hub.lifecycle.register("2222", "h2")
            await hub.tasks.drain()
            return await hub.lifecycle.shutdown()

        assert run(scenario) == 2
        assert len(hub.registry) == 0
        assert store.presence["1111"][0] is False
        assert store.presence["2222"][0] is False


class TestBackgroundTasks:
    def test_failures_are_swallowed(self, run):
        tasks = BackgroundTasks()
        finished = []

        async def boom():
            raise RuntimeError("boom")

        async def fine():
            finished.append(True)

        async def scenario():
            tasks.schedule(boom(), name="boom")
            tasks.schedule(fine(), name="fine")
            assert len(tasks) == 2
            await tasks.drain()

        run(scenario)

        assert finished == [True]
        assert len(tasks) == 0
