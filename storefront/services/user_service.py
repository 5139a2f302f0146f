from sqlalchemy.orm import Session
from storefront.data.models.user import UserModel
from storefront.repos.user_repo import UserRepo
from storefront.domain.errors import NotFoundError
from storefront.domain.schemas import UserCreate, UserRead


class UserService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserRead:
        # idempotent on id, an existing user is returned as is
        existing = self.repo.get_user(payload.id)
        if existing:
            return UserRead.model_validate(existing)

        user = self.repo.create_user(
            UserModel(id=payload.id, name=payload.name, is_admin=payload.is_admin)
        )
        self.db.commit()
        return UserRead.model_validate(user)

    def get_user(self, user_id: int) -> UserRead:
        user = self.repo.get_user(user_id)
        if not user:
            raise NotFoundError(f"User not found with id: {user_id}")
        return UserRead.model_validate(user)

    def require_admin(self, user_id: int) -> None:
        if not self.repo.is_admin(user_id):
            raise PermissionError("Admin privileges required")
