# bakery/tasks/expire.py
from bakery.celery_worker import celery_app
from bakery.data.database import SessionLocal
from bakery.services.cart_service import CartService
from bakery.services.lock_service import LockService
from bakery.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="bakery.tasks.expire.abandon_stale_carts_task")
def abandon_stale_carts_task():
    logger.info("Abandon stale carts task started")

    db = SessionLocal()
    try:
        abandoned = CartService(db, LockService()).abandon_stale()
        logger.info(f"Abandoned {abandoned} carts")
        return {"abandoned": abandoned}
    finally:
        db.close()
