"""Whole-unit money helpers.

Listing prices, bids and offers are integers in whole pounds. No float,
no Decimal.
"""

# Amount columns are BIGINT.
MAX_AMOUNT = 2**63 - 1


def is_valid_amount(amount: int) -> bool:
    return (
        not isinstance(amount, bool)
        and isinstance(amount, int)
        and 0 < amount <= MAX_AMOUNT
    )


def validate_amount(amount: int) -> None:
    """Amounts must be positive whole units that fit the storage column."""
    if not is_valid_amount(amount):
        raise ValueError(f"Amount must be an integer between 1 and {MAX_AMOUNT}, got {amount!r}")


def pounds_to_display(amount: int) -> str:
    """Render whole pounds: 1000 -> '£1,000', -25 -> '-£25'."""
    if amount < 0:
        return f"-£{-amount:,}"
    return f"£{amount:,}"
