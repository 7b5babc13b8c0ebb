"""Integer coin arithmetic.

Item prices are stored in currency units (VND); balances and order amounts in
coins. All values are int — no float, no Decimal.
"""


def price_to_coins(price: int, unit_price: int) -> int:
    """Convert a listed price to coins, rounding up (the platform never undercharges).

    ceil(price / unit_price) using integer ceiling: -(-a // b)
    """
    if unit_price <= 0:
        raise ValueError(f"unit_price must be positive, got {unit_price}")
    if price < 0:
        raise ValueError(f"price must not be negative, got {price}")
    return -(-price // unit_price)


def coins_to_display(coins: int) -> str:
    """1234 -> '1,234 xu', -30 -> '-30 xu'."""
    if coins < 0:
        return f"-{-coins:,} xu"
    return f"{coins:,} xu"
