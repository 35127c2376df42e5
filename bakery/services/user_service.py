from sqlalchemy.orm import Session

from bakery.data.models.user import UserModel
from bakery.domain.errors import UserNotFound
from bakery.domain.schemas import UserCreate, UserRead
from bakery.repos.user_repo import UserRepo


class UserService:
    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserRead:
        email = payload.email.strip().lower()
        existing = self.repo.get_by_email(email)
        if existing:
            return UserRead.model_validate(existing)

        user = UserModel(email=email, name=payload.name.strip(), role=payload.role)
        created = self.repo.create_user(user)
        return UserRead.model_validate(created)

    def get_user(self, user_id: int) -> UserRead:
        user = self.repo.get_user(user_id)
        if not user:
            raise UserNotFound(details={"userId": user_id})
        return UserRead.model_validate(user)
