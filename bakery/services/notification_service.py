# bakery/services/notification_service.py
from bakery.celery_worker import celery_app
from bakery.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Customer notifications.
    Sent through Celery so checkout never waits on delivery.
    """

    @staticmethod
    def send_order_notification(user_id: int, order_id: int):
        """Queue the "order received" message. The order is already committed,
        so a broker outage is logged instead of failing the checkout."""
        try:
            send_order_notification_task.delay(user_id, order_id)
        except Exception as e:
            logger.warning(f"Could not queue notification for order {order_id}: {e}")


@celery_app.task(name="bakery.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: int, order_id: int):
    """
    Celery task - delivery channel (email / SMS) plugs in here.
    For now it only logs.
    """
    logger.info(f"[NOTIFICATION] User {user_id}: order {order_id} received by the bakery")

    return {"user_id": user_id, "order_id": order_id, "status": "sent"}
