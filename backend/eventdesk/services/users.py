"""User Service — account creation and lookup."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.core.errors import ConflictError
from eventdesk.models.user import User
from eventdesk.schemas.user import UserCreate

logger = logging.getLogger(__name__)


class UserService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_user(self, body: UserCreate) -> User:
        existing = await self.db.execute(
            select(User.id).where(User.email == body.email),
        )
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(
                "A user with this email already exists", "EMAIL_TAKEN",
            )
        user = User(
            email=body.email, full_name=body.full_name, role=body.role.value,
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        logger.info("User created", extra={"user_id": user.id})
        return user
