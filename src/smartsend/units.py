"""Token amount conversion and address checks.

Amounts are carried as integer minor units everywhere; decimal strings only
exist at the user-input and display edges.
"""

import logging
import re

from eth_utils import is_address

logger = logging.getLogger(__name__)

MAX_UINT256 = 2**256 - 1

_AMOUNT_RE = re.compile(r"^(-?)([0-9]*)\.?([0-9]*)$")


def is_valid_address(address: str) -> bool:
    """Check 0x-prefixed 40-hex address; mixed case must be EIP-55 checksummed."""
    if not isinstance(address, str) or not address.startswith("0x"):
        return False
    return is_address(address)


def to_minor_units(amount: str, decimals: int) -> int:
    """Convert a decimal string to integer minor units.

    Trailing zeros past the token precision are accepted; any other digit
    past it is rejected rather than rounded.

    Args:
        amount: Decimal string such as "10.50"
        decimals: Token precision

    Returns:
        Signed integer amount in minor units

    Raises:
        ValueError: If the string is malformed, too precise or out of range
    """
    if not isinstance(amount, str):
        raise ValueError(f"Amount must be a string, got {type(amount).__name__}")

    match = _AMOUNT_RE.match(amount.strip())
    if not match:
        raise ValueError(f"Invalid amount: {amount!r}")

    sign, whole, fraction = match.groups()
    if not whole and not fraction:
        raise ValueError(f"Invalid amount: {amount!r}")

    fraction = fraction.rstrip("0")
    if len(fraction) > decimals:
        raise ValueError(f"Too many decimals for precision {decimals}: {amount!r}")

    value = int(whole or "0") * 10**decimals + int(fraction.ljust(decimals, "0") or "0")
    if value > MAX_UINT256:
        raise ValueError(f"Amount out of range: {amount!r}")

    return -value if sign else value


def format_units(amount: int, decimals: int) -> str:
    """Format minor units as a decimal string ("10500000", 6 -> "10.5").

    The fractional part always has at least one digit ("1.0").
    """
    if amount < 0:
        raise ValueError(f"Amount must be unsigned, got {amount}")

    whole, fraction = divmod(amount, 10**decimals)
    fraction_str = str(fraction).zfill(decimals).rstrip("0") or "0"
    return f"{whole}.{fraction_str}"


def format_balance(amount, decimals: int, symbol: str) -> str:
    """Human-readable balance, "0.00 <symbol>" when unknown or unparseable."""
    if amount is None or amount == "":
        return f"0.00 {symbol}"
    try:
        return f"{format_units(int(amount), decimals)} {symbol}"
    except (TypeError, ValueError) as e:
        logger.error(f"Error formatting {symbol} amount {amount!r}: {e}")
        return f"0.00 {symbol}"
