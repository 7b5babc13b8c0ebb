"""Admin user-management API: list users, grant or revoke admin and seller roles."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.bz_common.database import get_db_session
from src.bz_common.response import ApiResponse, respond
from src.bz_gateway.auth.dependencies import get_current_principal
from src.bz_gateway.auth.permissions import Principal
from src.bz_gateway.user.roles import RoleService
from src.bz_gateway.user.schemas import AddSellerRequest

router = APIRouter(prefix="/admin/users", tags=["admin"])
_roles = RoleService()

PrincipalDep = Annotated[Principal, Depends(get_current_principal)]
SessionDep = Annotated[AsyncSession, Depends(get_db_session)]


@router.get("")
async def list_users(
    principal: PrincipalDep,
    db: SessionDep,
    request: Request,
    limit: int = Query(100, ge=1, le=500),
) -> ApiResponse:
    data = await _roles.list_users(db, principal, limit)
    return respond(request, data.model_dump())


@router.put("/{user_id}/admin")
async def grant_admin(
    user_id: uuid.UUID, principal: PrincipalDep, db: SessionDep, request: Request
) -> ApiResponse:
    data = await _roles.set_admin(db, principal, str(user_id), True)
    return respond(request, data.model_dump(), "Admin role granted")


@router.delete("/{user_id}/admin")
async def revoke_admin(
    user_id: uuid.UUID, principal: PrincipalDep, db: SessionDep, request: Request
) -> ApiResponse:
    data = await _roles.set_admin(db, principal, str(user_id), False)
    return respond(request, data.model_dump(), "Admin role revoked")


@router.put("/{user_id}/seller")
async def add_seller(
    user_id: uuid.UUID,
    principal: PrincipalDep,
    db: SessionDep,
    request: Request,
    body: AddSellerRequest | None = None,
) -> ApiResponse:
    display_name = body.display_name if body else None
    data = await _roles.add_seller(db, principal, str(user_id), display_name)
    return respond(request, data.model_dump(), "Seller profile created")


@router.delete("/{user_id}/seller")
async def remove_seller(
    user_id: uuid.UUID, principal: PrincipalDep, db: SessionDep, request: Request
) -> ApiResponse:
    data = await _roles.remove_seller(db, principal, str(user_id))
    return respond(request, data.model_dump(), "Seller profile removed")
