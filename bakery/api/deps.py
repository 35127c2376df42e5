# bakery/api/deps.py
from functools import lru_cache

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from bakery.data.database import get_db
from bakery.data.models.user import UserModel
from bakery.domain.errors import Forbidden, InvalidUser, Unauthorized
from bakery.repos.user_repo import UserRepo
from bakery.services.lock_service import LockService


def get_current_user(
    x_user_id: int | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
) -> UserModel | None:
    """Requester resolved from the X-User-Id header set by the auth gateway."""
    if x_user_id is None:
        return None

    user = UserRepo(db).get_user(x_user_id)
    if not user:
        raise InvalidUser(details={"userId": x_user_id})
    return user


def require_user(user: UserModel | None = Depends(get_current_user)) -> UserModel:
    if user is None:
        raise Unauthorized()
    return user


def require_admin(user: UserModel = Depends(require_user)) -> UserModel:
    if not user.is_admin:
        raise Forbidden("Admin role required.")
    return user


@lru_cache
def get_lock_service() -> LockService:
    # one connection pool per process
    return LockService()
