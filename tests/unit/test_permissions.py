"""Unit tests for capability checks."""

from unittest.mock import patch

import pytest

from src.bz_common.errors import ForbiddenError
from src.bz_gateway.auth.permissions import (
    Principal,
    can_approve_order,
    can_list_item,
    can_view_order,
    is_root_admin,
    owns_item,
    require_admin,
    require_root_admin,
    require_seller,
)

ADMIN = Principal(user_id="u-admin", email="root@bonz.vn", is_admin=True)
SELLER = Principal(user_id="u-seller", email="s@bonz.vn", seller_id="seller-1")
BUYER = Principal(user_id="u-buyer", email="b@bonz.vn")


@pytest.mark.parametrize(
    ("principal", "item_seller", "expected"),
    [
        (ADMIN, "seller-1", True),
        (ADMIN, None, True),
        (SELLER, "seller-1", True),
        (SELLER, "seller-2", False),
        (SELLER, None, False),
        (BUYER, "seller-1", False),
    ],
)
def test_can_approve_order(principal: Principal, item_seller: str | None, expected: bool) -> None:
    assert can_approve_order(principal, item_seller) is expected


def test_owns_item_needs_a_seller() -> None:
    assert owns_item(BUYER, None) is False
    assert owns_item(SELLER, "seller-1") is True


def test_can_view_order() -> None:
    assert can_view_order(BUYER, "u-buyer", "seller-1")
    assert can_view_order(SELLER, "u-other", "seller-1")
    assert not can_view_order(BUYER, "u-other", None)


def test_can_list_item() -> None:
    assert can_list_item(ADMIN)
    assert can_list_item(SELLER)
    assert not can_list_item(BUYER)


def test_require_admin() -> None:
    require_admin(ADMIN)
    with pytest.raises(ForbiddenError):
        require_admin(SELLER)


def test_require_seller() -> None:
    assert require_seller(SELLER) == "seller-1"
    with pytest.raises(ForbiddenError):
        require_seller(ADMIN)


def test_root_admin_matches_configured_email() -> None:
    with patch("src.bz_gateway.auth.permissions.settings") as mock_settings:
        mock_settings.ROOT_ADMIN_EMAIL = "Root@Bonz.vn"
        assert is_root_admin(ADMIN)
        assert not is_root_admin(Principal(user_id="u-2", email="other@bonz.vn", is_admin=True))
        # the email alone is not enough without the admin flag
        assert not is_root_admin(Principal(user_id="u-3", email="root@bonz.vn"))
        require_root_admin(ADMIN)
        with pytest.raises(ForbiddenError):
            require_root_admin(Principal(user_id="u-2", email="other@bonz.vn", is_admin=True))


def test_no_root_admin_configured() -> None:
    with patch("src.bz_gateway.auth.permissions.settings") as mock_settings:
        mock_settings.ROOT_ADMIN_EMAIL = None
        assert not is_root_admin(ADMIN)
