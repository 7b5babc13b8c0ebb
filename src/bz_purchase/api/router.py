"""Buyer purchase REST API: pay with coins or claim a free item."""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.bz_common.database import get_db_session
from src.bz_common.response import ApiResponse, respond
from src.bz_gateway.auth.dependencies import get_current_principal
from src.bz_gateway.auth.permissions import Principal
from src.bz_purchase.application.schemas import ClaimRequest, CoinPurchaseRequest
from src.bz_purchase.application.workflow import PurchaseWorkflow

router = APIRouter(prefix="/purchases", tags=["purchases"])

_workflow = PurchaseWorkflow()


@router.post("/coins")
async def purchase_with_coins(
    body: CoinPurchaseRequest,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    background_tasks: BackgroundTasks,
) -> ApiResponse:
    data = await _workflow.purchase_with_coins(
        db, principal, body.to_ref(), body.expected_coins, background_tasks
    )
    return respond(request, data.model_dump(), "Purchase completed")


@router.post("/claim")
async def claim_free_item(
    body: ClaimRequest,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    background_tasks: BackgroundTasks,
) -> ApiResponse:
    data = await _workflow.claim_free_item(db, principal, body.to_ref(), background_tasks)
    return respond(request, data.model_dump(), "Item claimed")
