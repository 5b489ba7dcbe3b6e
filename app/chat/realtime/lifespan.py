"""
ASGI lifespan hooks for the realtime core.

Startup: the registry of a fresh process is empty, so every durable
online flag is stale and gets reset.
Shutdown: identities still bound in this process are marked offline.
"""

from __future__ import annotations

import logging

from channels.db import database_sync_to_async

from chat.realtime.hub import get_hub

logger = logging.getLogger(__name__)


class PresenceLifespan:
    """
    ASGI application for the `lifespan` scope.

    Usage in config/asgi.py:
        application = ProtocolTypeRouter({
            ...
            "lifespan": PresenceLifespan(),
        })
    """

    async def __call__(self, scope, receive, send):
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                try:
                    await self.startup()
                except Exception as e:
                    logger.exception("Realtime startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(e)})
                    return
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                try:
                    await self.shutdown()
                except Exception as e:
                    logger.exception("Realtime shutdown failed")
                    await send({"type": "lifespan.shutdown.failed", "message": str(e)})
                    return
                await send({"type": "lifespan.shutdown.complete"})
                return

    async def startup(self) -> None:
        from accounts.services import UserService

        count = await database_sync_to_async(UserService.reset_presence)()
        logger.info(f"Realtime startup: {count} stale online flags cleared")

    async def shutdown(self) -> None:
        hub = get_hub()
        await hub.tasks.drain()
        released = await hub.lifecycle.shutdown()
        logger.info(f"Realtime shutdown: {released} sessions marked offline")
