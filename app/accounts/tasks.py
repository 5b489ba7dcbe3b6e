"""
Celery tasks for accounts.

This module defines async tasks for:
- Adding a new profile to the global group after its creation commits
- Cleaning up stale profiles (scheduled daily via celery-beat)
- Resetting the presence mirror

Related files:
    - services.py: UserService
    - chat/services.py: GroupService.add_to_global_group

Usage:
    from accounts.tasks import add_user_to_global_group
    add_user_to_global_group.delay("4821")
"""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def add_user_to_global_group(self, user_code: str) -> bool:
    """
    Add a profile to the global group, creating the group if needed.

    Args:
        user_code: Code of the new profile

    Returns:
        True if the profile was added, False if it no longer exists
    """
    from accounts.models import User
    from chat.services import GroupService

    try:
        user = User.objects.get(code=user_code)
    except User.DoesNotExist:
        logger.warning(f"Profile {user_code} vanished before global group backfill")
        return False

    GroupService.add_to_global_group(user)
    logger.info(f"Added profile {user_code} to the global group")
    return True


@shared_task
def cleanup_stale_profiles() -> int:
    """
    Delete profiles that were abandoned.

    This is a periodic task scheduled via celery-beat (daily).

    Returns:
        Number of profiles deleted
    """
    from accounts.services import UserService

    count = UserService.cleanup_stale_profiles()
    logger.info(f"cleanup_stale_profiles removed {count} profiles")
    return count


@shared_task
def reset_presence() -> int:
    """
    Mark every profile offline.

    Run this after a full restart of the realtime workers when the
    lifespan startup hook is not available (e.g. under a server without
    ASGI lifespan support).

    Returns:
        Number of profiles reset
    """
    from accounts.services import UserService

    return UserService.reset_presence()
