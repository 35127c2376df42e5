from datetime import datetime, timedelta, timezone

from bakery.data.models.cart import CartModel
from bakery.domain.enums import CartStatus
from bakery.services.cart_service import CartService
from bakery.tasks import expire


def test_abandon_stale_carts_task(db, session_factory, lock_service, customer, monkeypatch):
    cart_id = CartService(db, lock_service).get_cart(customer, None)["id"]
    cart = db.get(CartModel, cart_id)
    cart.updated_at = datetime.now(timezone.utc) - timedelta(days=8)
    db.commit()

    monkeypatch.setattr(expire, "SessionLocal", session_factory)

    assert expire.abandon_stale_carts_task() == {"abandoned": 1}
    db.expire_all()
    assert db.get(CartModel, cart_id).status == CartStatus.ABANDONED


def test_abandon_stale_carts_task_with_nothing_to_do(session_factory, monkeypatch):
    monkeypatch.setattr(expire, "SessionLocal", session_factory)
    assert expire.abandon_stale_carts_task() == {"abandoned": 0}


def test_beat_schedule_registered():
    from bakery.celery_worker import celery_app

    entry = celery_app.conf.beat_schedule["abandon-stale-carts-hourly"]
    assert entry["task"] == "bakery.tasks.expire.abandon_stale_carts_task"
