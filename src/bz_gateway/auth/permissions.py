"""Capability checks — the single place that decides who may do what.

Routers resolve a Principal via `get_current_principal`; services ask these
functions instead of comparing emails or role strings themselves.
"""

from dataclasses import dataclass

from config.settings import settings
from src.bz_common.errors import ForbiddenError


@dataclass(frozen=True)
class Principal:
    user_id: str
    email: str
    is_admin: bool = False
    seller_id: str | None = None   # set when the user has a seller profile

    @property
    def is_seller(self) -> bool:
        return self.seller_id is not None


def owns_item(principal: Principal, item_seller_id: str | None) -> bool:
    return item_seller_id is not None and principal.seller_id == item_seller_id


def can_approve_order(principal: Principal, item_seller_id: str | None) -> bool:
    """Admins approve anything; sellers approve orders on their own items."""
    return principal.is_admin or owns_item(principal, item_seller_id)


def can_view_order(principal: Principal, buyer_id: str, item_seller_id: str | None) -> bool:
    return principal.user_id == buyer_id or can_approve_order(principal, item_seller_id)


def can_list_item(principal: Principal) -> bool:
    return principal.is_admin or principal.is_seller


def is_root_email(email: str) -> bool:
    root = settings.ROOT_ADMIN_EMAIL
    return root is not None and email.lower() == root.lower()


def is_root_admin(principal: Principal) -> bool:
    return principal.is_admin and is_root_email(principal.email)


def require_admin(principal: Principal) -> None:
    if not principal.is_admin:
        raise ForbiddenError("admin access required")


def require_root_admin(principal: Principal) -> None:
    """Granting or revoking admin rights is reserved to the root admin."""
    if not is_root_admin(principal):
        raise ForbiddenError("only the root admin can change admin roles")


def require_seller(principal: Principal) -> str:
    """Return the caller's seller id or raise."""
    if principal.seller_id is None:
        raise ForbiddenError("seller profile required")
    return principal.seller_id
