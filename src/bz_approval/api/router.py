"""Order review REST API — admins and owning sellers approve or reject."""

import uuid
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.bz_approval.application.workflow import ApprovalWorkflow
from src.bz_common.database import get_db_session
from src.bz_common.response import ApiResponse, respond
from src.bz_gateway.auth.dependencies import get_current_principal
from src.bz_gateway.auth.permissions import Principal

router = APIRouter(prefix="/approvals", tags=["approvals"])

_workflow = ApprovalWorkflow()


@router.get("/orders")
async def list_pending_orders(
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    limit: int = Query(50, ge=1, le=200, description="Items per page"),
) -> ApiResponse:
    data = await _workflow.list_pending(db, principal, limit)
    return respond(request, data.model_dump())


@router.post("/orders/{order_id}/approve")
async def approve_order(
    order_id: uuid.UUID,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    background_tasks: BackgroundTasks,
) -> ApiResponse:
    data = await _workflow.approve(db, principal, str(order_id), background_tasks)
    return respond(request, data.model_dump(), "Order approved")


@router.post("/orders/{order_id}/reject")
async def reject_order(
    order_id: uuid.UUID,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    background_tasks: BackgroundTasks,
) -> ApiResponse:
    data = await _workflow.reject(db, principal, str(order_id), background_tasks)
    return respond(request, data.model_dump(), "Order rejected")
