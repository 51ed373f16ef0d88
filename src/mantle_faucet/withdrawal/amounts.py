"""Amount parsing and unit conversion."""

from decimal import Decimal, InvalidOperation, localcontext

from mantle_faucet.errors import InvalidAmountError

# Largest value an EVM uint256 can hold
MAX_UINT256 = 2**256 - 1


def parse_amount(amount: str) -> Decimal:
    """Parse a decimal string in display units (e.g. ether).

    Raises:
        InvalidAmountError: If the string is not a finite, non-negative decimal
    """
    try:
        value = Decimal(amount.strip())
    except (InvalidOperation, AttributeError):
        raise InvalidAmountError()

    if not value.is_finite() or value < 0:
        raise InvalidAmountError()

    return value


def to_smallest_unit(amount: str, decimals: int = 18) -> int:
    """Convert a display amount to the chain's smallest integer unit.

    The value is scaled by ``10**decimals`` and truncated, so "1.5" with 18
    decimals is exactly 1_500_000_000_000_000_000.
    """
    value = parse_amount(amount)
    if value and value.adjusted() + decimals > 78:
        raise InvalidAmountError()

    # Enough precision that the scaled value is never rounded
    with localcontext() as ctx:
        ctx.prec = 100
        try:
            scaled = int(value * (Decimal(10) ** decimals))
        except ArithmeticError:
            raise InvalidAmountError()

    if scaled > MAX_UINT256:
        raise InvalidAmountError()

    return scaled
