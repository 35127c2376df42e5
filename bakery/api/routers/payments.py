# bakery/api/routers/payments.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bakery.api.deps import require_user
from bakery.data.database import get_db
from bakery.data.models.user import UserModel
from bakery.domain.schemas import PaymentCreate, PaymentResultOut
from bakery.services.payment_service import PaymentService

router = APIRouter(prefix="/payments", tags=["payments"])


def get_service(db: Session = Depends(get_db)) -> PaymentService:
    return PaymentService(db)


@router.post("", response_model=PaymentResultOut, status_code=201)
def create_payment(
    payload: PaymentCreate,
    user: UserModel = Depends(require_user),
    svc: PaymentService = Depends(get_service),
):
    """Charges the order through the mock gateway. A declined charge is still recorded."""
    return svc.process_payment(
        user,
        payload.order_id,
        payload.method,
        amount=payload.amount,
        force_result=payload.force_result,
    )
