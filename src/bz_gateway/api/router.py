"""Auth API router: register, login, refresh, and the caller's own profile."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.bz_catalog.infrastructure.persistence import CatalogRepository
from src.bz_common.database import get_db_session
from src.bz_common.response import ApiResponse, respond
from src.bz_gateway.auth.dependencies import get_current_principal, get_current_user
from src.bz_gateway.auth.permissions import Principal
from src.bz_gateway.user.db_models import UserModel
from src.bz_gateway.user.schemas import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    RegisterResponse,
    UserInfo,
)
from src.bz_gateway.user.service import UserService, is_admin_user

router = APIRouter(prefix="/auth", tags=["auth"])
_service = UserService()
_catalog = CatalogRepository()

SessionDep = Annotated[AsyncSession, Depends(get_db_session)]


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(request: Request, body: RegisterRequest, db: SessionDep) -> ApiResponse:
    async with db.begin():
        user = await _service.register(body.username, body.email, body.password, db)

    data = RegisterResponse(
        user_id=str(user.id),
        username=user.username,
        email=user.email,
        created_at=user.created_at.isoformat(),
    )
    return respond(request, data.model_dump(), "User registered successfully")


@router.post("/login")
async def login(request: Request, body: LoginRequest, db: SessionDep) -> ApiResponse:
    user, access_token, refresh_token = await _service.login(body.username, body.password, db)
    seller = await _catalog.get_seller_by_user_id(db, str(user.id))
    principal = Principal(
        user_id=str(user.id),
        email=user.email,
        is_admin=is_admin_user(user),
        seller_id=seller.id if seller else None,
    )
    data = LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
        user=UserInfo.build(user.username, principal),
    )
    return respond(request, data.model_dump(), "Login successful")


@router.post("/refresh")
async def refresh_token(request: Request, body: RefreshRequest) -> ApiResponse:
    new_access_token = await _service.refresh(body.refresh_token)
    data = RefreshResponse(
        access_token=new_access_token,
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
    )
    return respond(request, data.model_dump(), "Token refreshed")


@router.get("/me")
async def me(
    request: Request,
    user: Annotated[UserModel, Depends(get_current_user)],
    principal: Annotated[Principal, Depends(get_current_principal)],
) -> ApiResponse:
    """Who the caller is and what the shop lets them do."""
    return respond(request, UserInfo.build(user.username, principal).model_dump())
