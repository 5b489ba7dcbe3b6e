"""
Tests for chat Celery tasks.
"""

from django_celery_beat.models import PeriodicTask

from chat.models import Group
from chat.tasks import backfill_global_group


class TestBackfillGlobalGroup:
    def test_adds_missing_profiles(self, alice, bob):
        assert backfill_global_group() == 2

        group = Group.objects.get(is_global=True)
        assert group.recipient_codes() == {alice.code, bob.code}

    def test_delay_runs_eagerly(self, alice):
        result = backfill_global_group.delay()

        assert result.get() == 1

    def test_is_scheduled_hourly(self, db):
        task = PeriodicTask.objects.get(name="Chat: Backfill Global Group")

        assert task.task == "chat.tasks.backfill_global_group"
        assert (task.interval.every, task.interval.period) == (1, "hours")
