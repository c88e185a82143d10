"""SmartMess project package.

The Celery app is imported here so that ``@shared_task`` functions in the
apps bind to the configured Redis-backed app when Django starts.
"""

from .celery import app as celery_app  # noqa: F401

__all__ = ("celery_app",)
