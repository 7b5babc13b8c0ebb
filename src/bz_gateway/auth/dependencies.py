"""FastAPI dependencies: get_current_user, get_current_principal.

Usage in any protected router:
    from src.bz_gateway.auth.dependencies import get_current_principal

    @router.get("/protected")
    async def protected(principal: Principal = Depends(get_current_principal)):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.bz_catalog.infrastructure.persistence import CatalogRepository
from src.bz_common.database import get_db_session
from src.bz_common.errors import AccountDisabledError, InvalidCredentialsError
from src.bz_gateway.auth.jwt_handler import decode_token
from src.bz_gateway.auth.permissions import Principal
from src.bz_gateway.user.db_models import UserModel
from src.bz_gateway.user.service import is_admin_user

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)

_catalog = CatalogRepository()


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> UserModel:
    """Validate the Bearer token and return the UserModel.

    Raises HTTP 401 if the token is missing, invalid, or expired.
    Raises AccountDisabledError if the user account is disabled.
    """
    try:
        payload = decode_token(token, expected_type="access")
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    user_id: str | None = payload.get("sub")
    if not user_id:
        raise _CREDENTIALS_EXCEPTION

    result = await db.execute(select(UserModel).where(UserModel.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise _CREDENTIALS_EXCEPTION

    if not user.is_active:
        raise AccountDisabledError()

    return user


async def get_current_principal(
    user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Principal:
    """Resolve the caller's capabilities: admin flag and seller profile."""
    seller = await _catalog.get_seller_by_user_id(db, str(user.id))
    return Principal(
        user_id=str(user.id),
        email=user.email,
        is_admin=is_admin_user(user),
        seller_id=seller.id if seller else None,
    )
