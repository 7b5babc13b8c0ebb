"""RoleService — admin management of who is an admin and who sells.

Any admin can list users and grant or remove seller profiles. Granting or
revoking admin rights needs the root admin (ROOT_ADMIN_EMAIL), whose own
rights cannot be revoked.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.bz_catalog.domain.repository import CatalogRepositoryProtocol
from src.bz_catalog.infrastructure.persistence import CatalogRepository
from src.bz_common.errors import (
    ForbiddenError,
    SellerExistsError,
    SellerInUseError,
    SellerNotFoundError,
    UserNotFoundError,
)
from src.bz_gateway.auth.permissions import (
    Principal,
    is_root_admin,
    is_root_email,
    require_admin,
    require_root_admin,
)
from src.bz_gateway.user.db_models import UserModel
from src.bz_gateway.user.schemas import ManagedUser, ManagedUserList
from src.bz_gateway.user.service import is_admin_user

logger = logging.getLogger(__name__)


def _managed(user: UserModel, seller_id: str | None) -> ManagedUser:
    return ManagedUser(
        user_id=str(user.id),
        username=user.username,
        email=user.email,
        is_active=user.is_active,
        is_admin=is_admin_user(user),
        is_root_admin=is_root_email(user.email),
        seller_id=seller_id,
    )


class RoleService:
    def __init__(self, catalog: CatalogRepositoryProtocol | None = None) -> None:
        self._catalog: CatalogRepositoryProtocol = catalog or CatalogRepository()

    async def list_users(
        self, db: AsyncSession, principal: Principal, limit: int
    ) -> ManagedUserList:
        require_admin(principal)
        result = await db.execute(
            select(UserModel).order_by(UserModel.created_at.desc()).limit(limit)
        )
        users = list(result.scalars().all())
        sellers = await self._catalog.get_seller_ids_by_user(db, [str(u.id) for u in users])
        return ManagedUserList(
            users=[_managed(u, sellers.get(str(u.id))) for u in users],
            caller_is_root_admin=is_root_admin(principal),
        )

    async def set_admin(
        self, db: AsyncSession, principal: Principal, user_id: str, is_admin: bool
    ) -> ManagedUser:
        require_root_admin(principal)
        try:
            user = await self._load_user(db, user_id)
            if not is_admin:
                if user_id == principal.user_id:
                    raise ForbiddenError("you cannot remove your own admin role")
                if is_root_email(user.email):
                    raise ForbiddenError("the root admin keeps admin rights")
            user.is_admin = is_admin
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Admin role %s for user %s by %s",
            "granted" if is_admin else "revoked", user_id, principal.user_id,
        )
        seller = await self._catalog.get_seller_by_user_id(db, user_id)
        return _managed(user, seller.id if seller else None)

    async def add_seller(
        self,
        db: AsyncSession,
        principal: Principal,
        user_id: str,
        display_name: str | None = None,
    ) -> ManagedUser:
        """Create a bare seller profile; bank details are filled in later."""
        require_admin(principal)
        try:
            user = await self._load_user(db, user_id)
            if await self._catalog.get_seller_by_user_id(db, user_id) is not None:
                raise SellerExistsError()
            seller = await self._catalog.create_seller(
                db, user_id, display_name or user.username, None, None, None
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Seller %s created for user %s by %s", seller.id, user_id, principal.user_id)
        return _managed(user, seller.id)

    async def remove_seller(
        self, db: AsyncSession, principal: Principal, user_id: str
    ) -> ManagedUser:
        require_admin(principal)
        try:
            user = await self._load_user(db, user_id)
            seller = await self._catalog.get_seller_by_user_id(db, user_id)
            if seller is None:
                raise SellerNotFoundError(user_id)
            if not await self._catalog.delete_seller(db, seller.id):
                raise SellerInUseError(seller.id, "it has listings or an unwithdrawn balance")
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Seller %s removed by %s", seller.id, principal.user_id)
        return _managed(user, None)

    async def _load_user(self, db: AsyncSession, user_id: str) -> UserModel:
        result = await db.execute(select(UserModel).where(UserModel.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise UserNotFoundError(user_id)
        return user
