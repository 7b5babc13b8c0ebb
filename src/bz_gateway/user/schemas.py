"""Pydantic request/response schemas for bz_gateway.

All responses are wrapped in ApiResponse at the router layer.
"""

import re

from pydantic import BaseModel, EmailStr, Field, field_validator

from src.bz_gateway.auth.permissions import Principal, can_list_item


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=64, pattern=r"^[a-zA-Z0-9_]+$")
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("password")
    @classmethod
    def password_complexity(cls, v: str) -> str:
        """At least one uppercase, one lowercase and one digit."""
        if not re.search(r"[A-Z]", v):
            raise ValueError("Password must contain at least one uppercase letter")
        if not re.search(r"[a-z]", v):
            raise ValueError("Password must contain at least one lowercase letter")
        if not re.search(r"\d", v):
            raise ValueError("Password must contain at least one digit")
        return v


class LoginRequest(BaseModel):
    username: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class UserInfo(BaseModel):
    user_id: str
    username: str
    email: str
    is_admin: bool = False
    seller_id: str | None = None
    can_list_items: bool = False
    can_review_orders: bool = False

    @classmethod
    def build(cls, username: str, principal: Principal) -> "UserInfo":
        return cls(
            user_id=principal.user_id,
            username=username,
            email=principal.email,
            is_admin=principal.is_admin,
            seller_id=principal.seller_id,
            can_list_items=can_list_item(principal),
            # admins review everything, sellers their own items
            can_review_orders=principal.is_admin or principal.is_seller,
        )


class RegisterResponse(BaseModel):
    user_id: str
    username: str
    email: str
    created_at: str


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int = 1800
    user: UserInfo


class RefreshResponse(BaseModel):
    access_token: str
    expires_in: int = 1800


# ---------------------------------------------------------------------------
# Role management (admin)
# ---------------------------------------------------------------------------


class AddSellerRequest(BaseModel):
    display_name: str | None = Field(
        None, min_length=2, max_length=128, description="Defaults to the username"
    )


class ManagedUser(BaseModel):
    user_id: str
    username: str
    email: str
    is_active: bool
    is_admin: bool
    is_root_admin: bool
    seller_id: str | None = None


class ManagedUserList(BaseModel):
    users: list[ManagedUser]
    caller_is_root_admin: bool
