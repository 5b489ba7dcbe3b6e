"""
Add Celery Beat schedule for the global group backfill.

New profiles join the global group through a task queued on commit; the
hourly backfill catches profiles whose task was lost.
"""

from django.db import migrations


def create_periodic_tasks(apps, schema_editor):
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    # Every hour
    schedule_hourly, _ = IntervalSchedule.objects.get_or_create(
        every=1,
        period="hours",
    )

    PeriodicTask.objects.get_or_create(
        name="Chat: Backfill Global Group",
        defaults={
            "task": "chat.tasks.backfill_global_group",
            "interval": schedule_hourly,
            "enabled": True,
            "description": "Adds profiles missing from the global group.",
        },
    )


def remove_periodic_tasks(apps, schema_editor):
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")
    PeriodicTask.objects.filter(name__startswith="Chat: ").delete()


class Migration(migrations.Migration):
    dependencies = [
        ("chat", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_tasks, remove_periodic_tasks),
    ]
