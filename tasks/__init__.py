from core.celery import app as celery_app

__all__ = ('celery_app',)

# Register periodic tasks
from celery.schedules import crontab
from django.conf import settings

if hasattr(settings, 'CELERY_BEAT_SCHEDULE'):
    celery_app.conf.beat_schedule = {
        'complete-expired-campaigns': {
            'task': 'apps.campaigns.tasks.complete_expired_campaigns',
            'schedule': settings.CAMPAIGN_SWEEP_MINUTES * 60,
        },
        'expire-trials': {
            'task': 'apps.credits.tasks.expire_trials',
            'schedule': crontab(minute=0),  # Hourly
        },
        'run-due-billing': {
            'task': 'apps.credits.tasks.run_due_billing',
            'schedule': crontab(hour=1, minute=0),  # Daily at 1 AM
        },
        **settings.CELERY_BEAT_SCHEDULE,
    }
