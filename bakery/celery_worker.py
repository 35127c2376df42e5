# bakery/celery_worker.py
from celery import Celery

from bakery.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "bakery",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# tasks live outside this module, import them explicitly so the worker registers them
celery_app.conf.imports = (
    "bakery.tasks.expire",
    "bakery.services.notification_service",
)

celery_app.conf.beat_schedule = {
    "abandon-stale-carts-hourly": {
        "task": "bakery.tasks.expire.abandon_stale_carts_task",
        "schedule": 60.0 * 60,
    },
}

celery_app.conf.timezone = "UTC"
