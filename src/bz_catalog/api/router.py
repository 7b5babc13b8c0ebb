"""bz_catalog REST API — seller profiles, item listings and admin edits."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.bz_catalog.application.schemas import (
    CreateAccountRequest,
    CreateProductRequest,
    CreateSellerRequest,
    UpdateAccountRequest,
    UpdateProductRequest,
)
from src.bz_catalog.application.service import CatalogApplicationService
from src.bz_catalog.domain.models import ItemRef
from src.bz_common.database import get_db_session
from src.bz_common.enums import ItemKind
from src.bz_common.response import ApiResponse, respond
from src.bz_gateway.auth.dependencies import get_current_principal
from src.bz_gateway.auth.permissions import Principal

router = APIRouter(prefix="/catalog", tags=["catalog"])

_service = CatalogApplicationService()


@router.post("/sellers", status_code=status.HTTP_201_CREATED)
async def create_seller(
    body: CreateSellerRequest,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create_seller(db, principal, body)
    return respond(request, data.model_dump(), "Seller profile created")


@router.post("/accounts", status_code=status.HTTP_201_CREATED)
async def create_account(
    body: CreateAccountRequest,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create_account(db, principal, body)
    return respond(request, data.model_dump(), "Account listed")


@router.post("/products", status_code=status.HTTP_201_CREATED)
async def create_product(
    body: CreateProductRequest,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create_product(db, principal, body)
    return respond(request, data.model_dump(), "Product listed")


@router.get("/items/{kind}")
async def list_items(
    kind: ItemKind,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    seller_id: uuid.UUID | None = Query(None, description="Only this seller's items"),
    include_sold: bool = Query(False),
    free_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    data = await _service.list_items(
        db, kind, str(seller_id) if seller_id else None, include_sold, free_only, limit
    )
    return respond(request, data.model_dump())


@router.get("/items/{kind}/{item_id}")
async def get_item(
    kind: ItemKind,
    item_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_item(db, ItemRef(kind, str(item_id)))
    return respond(request, data.model_dump())


@router.patch("/accounts/{account_id}")
async def update_account(
    account_id: uuid.UUID,
    body: UpdateAccountRequest,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.update_item(
        db, principal, ItemRef.account(str(account_id)), body.to_update()
    )
    return respond(request, data.model_dump(), "Account updated")


@router.patch("/products/{product_id}")
async def update_product(
    product_id: uuid.UUID,
    body: UpdateProductRequest,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.update_item(
        db, principal, ItemRef.product(str(product_id)), body.to_update()
    )
    return respond(request, data.model_dump(), "Product updated")


@router.delete("/items/{kind}/{item_id}")
async def delete_item(
    kind: ItemKind,
    item_id: uuid.UUID,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    await _service.delete_item(db, principal, ItemRef(kind, str(item_id)))
    return respond(request, None, "Item deleted")
