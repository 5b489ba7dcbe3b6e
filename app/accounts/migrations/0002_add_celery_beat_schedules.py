"""
Add Celery Beat schedule for stale profile cleanup.

Profiles that have not been opened for CHAT_STALE_PROFILE_DAYS and have
no contacts and no groups are removed once a day.
"""

from django.db import migrations


def create_periodic_tasks(apps, schema_editor):
    CrontabSchedule = apps.get_model("django_celery_beat", "CrontabSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    # Daily at 3 AM UTC
    crontab_daily_3am, _ = CrontabSchedule.objects.get_or_create(
        minute="0",
        hour="3",
        day_of_week="*",
        day_of_month="*",
        month_of_year="*",
    )

    PeriodicTask.objects.get_or_create(
        name="Accounts: Cleanup Stale Profiles",
        defaults={
            "task": "accounts.tasks.cleanup_stale_profiles",
            "crontab": crontab_daily_3am,
            "enabled": True,
            "description": (
                "Deletes unused profiles that have no contacts and belong "
                "to no group."
            ),
        },
    )


def remove_periodic_tasks(apps, schema_editor):
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")
    PeriodicTask.objects.filter(name__startswith="Accounts: ").delete()


class Migration(migrations.Migration):
    dependencies = [
        ("accounts", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_tasks, remove_periodic_tasks),
    ]
