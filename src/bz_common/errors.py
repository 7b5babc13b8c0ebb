"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  2xxx: Wallet (coin balances, top-ups, withdrawals)
  3xxx: Catalog (accounts, products, sellers)
  4xxx: Order
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth/User ---

class UsernameExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Username already exists", 409)


class EmailExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Email already exists", 409)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid username or password", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Account is disabled", 403)


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Refresh token is invalid or expired", 401)


class ForbiddenError(AppError):
    def __init__(self, detail: str = "Not allowed") -> None:
        super().__init__(1006, f"Forbidden: {detail}", 403)


class UserNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(1007, f"User not found: {user_id}", 404)


# --- 2xxx: Wallet ---

class InsufficientBalanceError(AppError):
    """Shown to buyers as a "top up coins" prompt."""

    def __init__(self, required: int, available: int) -> None:
        self.required = required
        self.available = available
        super().__init__(
            2001,
            f"Insufficient balance: required {required} coins, available {available} coins",
            422,
        )


class BalanceNotFoundError(AppError):
    def __init__(self, owner: str) -> None:
        super().__init__(2002, f"Coin balance not found for {owner}", 404)


class InvalidAmountError(AppError):
    def __init__(self, amount: int) -> None:
        super().__init__(2003, f"Amount must be a positive number of coins, got {amount}", 422)


class TopupNotFoundError(AppError):
    def __init__(self, topup_id: str) -> None:
        super().__init__(2004, f"Coin top-up not found: {topup_id}", 404)


class WithdrawalNotFoundError(AppError):
    def __init__(self, withdrawal_id: str) -> None:
        super().__init__(2005, f"Withdrawal request not found: {withdrawal_id}", 404)


# --- 3xxx: Catalog ---

class ItemNotFoundError(AppError):
    def __init__(self, item: str) -> None:
        super().__init__(3001, f"Item not found: {item}", 404)


class ItemAlreadySoldError(AppError):
    """Shown as "this item was already handled, please refresh"."""

    def __init__(self, item: str) -> None:
        super().__init__(3002, f"Item already sold: {item}", 409)


class ItemNotPurchasableError(AppError):
    def __init__(self, item: str, reason: str) -> None:
        super().__init__(3003, f"Item {item} cannot be purchased: {reason}", 422)


class PriceMismatchError(AppError):
    def __init__(self, offered: int, expected: int) -> None:
        self.expected = expected
        super().__init__(
            3004, f"Offered {offered} coins does not cover the price of {expected} coins", 422
        )


class SellerNotFoundError(AppError):
    def __init__(self, ref: str) -> None:
        super().__init__(3005, f"Seller profile not found: {ref}", 404)


class SellerExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(3006, "Seller profile already exists", 409)


class BankDetailsMissingError(AppError):
    def __init__(self) -> None:
        super().__init__(3007, "Seller profile has no bank details for withdrawal", 422)


class ItemInUseError(AppError):
    """Items referenced by an order stay in the catalog."""

    def __init__(self, item: str) -> None:
        super().__init__(3008, f"Item {item} has orders and cannot be deleted", 409)


class SellerInUseError(AppError):
    def __init__(self, seller_id: str, reason: str) -> None:
        super().__init__(3009, f"Seller {seller_id} cannot be removed: {reason}", 409)


# --- 4xxx: Order ---

class OrderNotFoundError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4004, f"Order not found: {order_id}", 404)


class AlreadyProcessedError(AppError):
    """Transition attempted on a request that is no longer pending."""

    def __init__(self, ref: str, status: str) -> None:
        super().__init__(4006, f"{ref} was already processed (status={status})", 409)


class CredentialsUnavailableError(AppError):
    def __init__(self, account_id: str) -> None:
        super().__init__(
            4007, f"No approved order gives access to account {account_id}", 403
        )


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
