"""Buyer-facing order REST API: receipt checkout and order queries."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.bz_common.database import get_db_session
from src.bz_common.enums import OrderStatus
from src.bz_common.response import ApiResponse, respond
from src.bz_gateway.auth.dependencies import get_current_principal
from src.bz_gateway.auth.permissions import Principal
from src.bz_order.application.schemas import CheckoutRequest
from src.bz_order.application.service import OrderApplicationService

router = APIRouter(prefix="/orders", tags=["orders"])

_service = OrderApplicationService()


@router.post("", status_code=status.HTTP_201_CREATED)
async def checkout(
    body: CheckoutRequest,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.checkout(db, principal, body)
    return respond(request, data.model_dump(), "Order submitted for review")


@router.get("")
async def list_orders(
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    status_filter: OrderStatus | None = Query(None, alias="status", description="Filter by status"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await _service.list_my_orders(db, principal, status_filter, limit)
    return respond(request, data.model_dump())


@router.get("/{order_id}")
async def get_order(
    order_id: uuid.UUID,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_order(db, principal, str(order_id))
    return respond(request, data.model_dump())


@router.get("/{order_id}/credentials")
async def get_credentials(
    order_id: uuid.UUID,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_credentials(db, principal, str(order_id))
    return respond(request, data.model_dump())
