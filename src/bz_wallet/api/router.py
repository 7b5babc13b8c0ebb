"""bz_wallet REST API — all endpoints require JWT authentication."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.bz_common.database import get_db_session
from src.bz_common.enums import LedgerEntryType, OrderStatus
from src.bz_common.response import ApiResponse, respond
from src.bz_gateway.auth.dependencies import get_current_principal
from src.bz_gateway.auth.permissions import Principal
from src.bz_wallet.application.schemas import (
    ReviewNoteRequest,
    TopupRequest,
    WithdrawalCreateRequest,
)
from src.bz_wallet.application.service import WalletApplicationService

router = APIRouter(prefix="/wallet", tags=["wallet"])

_service = WalletApplicationService()

PrincipalDep = Annotated[Principal, Depends(get_current_principal)]
SessionDep = Annotated[AsyncSession, Depends(get_db_session)]


@router.get("/balance")
async def get_balance(
    principal: PrincipalDep, db: SessionDep, request: Request
) -> ApiResponse:
    data = await _service.get_balance(db, principal)
    return respond(request, data.model_dump())


@router.get("/ledger")
async def list_ledger(
    principal: PrincipalDep,
    db: SessionDep,
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    entry_type: LedgerEntryType | None = Query(None, description="Filter by entry type"),
    as_seller: bool = Query(False, description="Show the seller balance history"),
) -> ApiResponse:
    data = await _service.list_ledger(db, principal, cursor, limit, entry_type, as_seller)
    return respond(request, data.model_dump())


@router.get("/topups/payment-info")
async def get_payment_info(
    principal: PrincipalDep, db: SessionDep, request: Request
) -> ApiResponse:
    data = await _service.get_payment_instructions(db)
    message = "success" if data.bank else "No bank account configured for top-ups"
    return respond(request, data.model_dump(), message)


@router.post("/topups", status_code=status.HTTP_201_CREATED)
async def request_topup(
    body: TopupRequest, principal: PrincipalDep, db: SessionDep, request: Request
) -> ApiResponse:
    data = await _service.request_topup(db, principal, body)
    return respond(request, data.model_dump(), "Top-up submitted for review")


@router.get("/topups")
async def list_topups(
    principal: PrincipalDep,
    db: SessionDep,
    request: Request,
    status_filter: OrderStatus | None = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    data = await _service.list_topups(db, principal, status_filter, limit)
    return respond(request, data.model_dump())


@router.post("/topups/{topup_id}/approve")
async def approve_topup(
    topup_id: uuid.UUID,
    principal: PrincipalDep,
    db: SessionDep,
    request: Request,
    body: ReviewNoteRequest | None = None,
) -> ApiResponse:
    note = body.admin_note if body else None
    data = await _service.approve_topup(db, principal, str(topup_id), note)
    return respond(request, data.model_dump(), "Top-up approved")


@router.post("/topups/{topup_id}/reject")
async def reject_topup(
    topup_id: uuid.UUID,
    principal: PrincipalDep,
    db: SessionDep,
    request: Request,
    body: ReviewNoteRequest | None = None,
) -> ApiResponse:
    note = body.admin_note if body else None
    data = await _service.reject_topup(db, principal, str(topup_id), note)
    return respond(request, data.model_dump(), "Top-up rejected")


@router.post("/withdrawals", status_code=status.HTTP_201_CREATED)
async def request_withdrawal(
    body: WithdrawalCreateRequest, principal: PrincipalDep, db: SessionDep, request: Request
) -> ApiResponse:
    data = await _service.request_withdrawal(db, principal, body)
    return respond(request, data.model_dump(), "Withdrawal submitted for review")


@router.get("/withdrawals")
async def list_withdrawals(
    principal: PrincipalDep,
    db: SessionDep,
    request: Request,
    status_filter: OrderStatus | None = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    data = await _service.list_withdrawals(db, principal, status_filter, limit)
    return respond(request, data.model_dump())


@router.post("/withdrawals/{withdrawal_id}/approve")
async def approve_withdrawal(
    withdrawal_id: uuid.UUID,
    principal: PrincipalDep,
    db: SessionDep,
    request: Request,
    body: ReviewNoteRequest | None = None,
) -> ApiResponse:
    note = body.admin_note if body else None
    data = await _service.approve_withdrawal(db, principal, str(withdrawal_id), note)
    return respond(request, data.model_dump(), "Withdrawal approved")


@router.post("/withdrawals/{withdrawal_id}/reject")
async def reject_withdrawal(
    withdrawal_id: uuid.UUID,
    principal: PrincipalDep,
    db: SessionDep,
    request: Request,
    body: ReviewNoteRequest | None = None,
) -> ApiResponse:
    note = body.admin_note if body else None
    data = await _service.reject_withdrawal(db, principal, str(withdrawal_id), note)
    return respond(request, data.model_dump(), "Withdrawal rejected")
