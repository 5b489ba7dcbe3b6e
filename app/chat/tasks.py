"""
Celery tasks for chat app.

This module defines async tasks for:
- Backfilling the global group (scheduled hourly via celery-beat)

Related files:
    - services.py: GroupService
    - accounts/tasks.py: add_user_to_global_group (per-profile, on commit)

Usage:
    from chat.tasks import backfill_global_group

    backfill_global_group.delay()
"""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task
def backfill_global_group() -> int:
    """
    Add every active profile missing from the global group.

    Returns:
        Number of profiles added
    """
    from chat.services import GroupService

    count = GroupService.backfill_global_group()
    logger.info(f"backfill_global_group added {count} profiles")
    return count
