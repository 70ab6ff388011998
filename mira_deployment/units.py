from decimal import Decimal, InvalidOperation
from typing import Union

from eth_utils import from_wei, to_wei

from mira_deployment.constants import TOKEN_DECIMALS
from mira_deployment.exceptions import ConfigurationError

# eth_utils unit names keyed by decimal places
_UNITS = {
    0: "wei",
    3: "kwei",
    6: "mwei",
    9: "gwei",
    12: "szabo",
    15: "finney",
    18: "ether",
}


def _unit(decimals: int) -> str:
    try:
        return _UNITS[decimals]
    except KeyError:
        raise ConfigurationError(f"Unsupported token decimals: {decimals}")


def to_base_units(value: Union[str, int, Decimal], decimals: int = TOKEN_DECIMALS) -> int:
    """
    Converts a human readable token amount (e.g. "0.1") into the integer
    amount of smallest units the contract expects. Refuses anything that
    cannot be represented exactly instead of rounding it.
    """
    if isinstance(value, (float, bool)):
        raise ConfigurationError(
            f"Threshold {value!r} must be given as a decimal string or an integer"
        )
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ConfigurationError(f"Threshold {value!r} is not a decimal number")

    if not amount.is_finite():
        raise ConfigurationError(f"Threshold {value!r} is not a finite number")
    if amount < 0:
        raise ConfigurationError(f"Threshold {value!r} must not be negative")
    if amount.normalize().as_tuple().exponent < -decimals:
        raise ConfigurationError(
            f"Threshold {value!r} has more than {decimals} decimal places"
        )

    return to_wei(amount, _unit(decimals))


def from_base_units(amount: int, decimals: int = TOKEN_DECIMALS) -> Decimal:
    """Converts an on-chain integer amount back into whole token units."""
    return Decimal(from_wei(amount, _unit(decimals)))
