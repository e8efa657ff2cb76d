import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_DOWN
from functools import total_ordering

DECIMAL_PLACES = 4
QUANTUM = Decimal(1).scaleb(-DECIMAL_PLACES)

# Amounts are bounded to a signed 64-bit count of ten-thousandths.
MAX_MINOR_UNITS = 2**63 - 1
MAX_AMOUNT = Decimal(MAX_MINOR_UNITS).scaleb(-DECIMAL_PLACES)

# Plain decimal notation only: no exponent, no digit separators.
_DECIMAL_RE = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)")


class AmountError(ValueError):
    """Base class for amount parsing and arithmetic failures."""


class AmountParseError(AmountError):
    pass


class AmountOverflowError(AmountError):
    pass


class AmountUnderflowError(AmountError):
    pass


def _check_bounds(value: Decimal) -> Decimal:
    if abs(value) > MAX_AMOUNT:
        raise AmountOverflowError(f"amount {value} exceeds {MAX_AMOUNT}")
    return value


@total_ordering
@dataclass(frozen=True, eq=False)
class Amount:
    """
    Fixed-point decimal with 4 fractional digits.
    Values with more digits are truncated toward zero on construction.
    """

    value: Decimal = Decimal("0")

    def __post_init__(self):
        value = self.value
        if isinstance(value, bool) or isinstance(value, float):
            raise TypeError(f"Amount requires Decimal or int, got {type(value).__name__}")
        if isinstance(value, int):
            value = Decimal(value)
        if not isinstance(value, Decimal):
            raise TypeError(f"Amount requires Decimal or int, got {type(value).__name__}")
        if not value.is_finite():
            raise AmountParseError(f"amount must be finite, got {value}")
        _check_bounds(value)
        quantized = value.quantize(QUANTUM, rounding=ROUND_DOWN)
        if not quantized:
            # -0.0000 renders as 0.0000
            quantized = abs(quantized)
        object.__setattr__(self, "value", quantized)

    @classmethod
    def zero(cls) -> "Amount":
        return cls(Decimal("0"))

    @classmethod
    def from_minor_units(cls, units: int) -> "Amount":
        """Build from an integer count of ten-thousandths, e.g. 314 -> 0.0314."""
        return cls(Decimal(units).scaleb(-DECIMAL_PLACES))

    @classmethod
    def parse(cls, text: str) -> "Amount":
        """Parse plain decimal text such as "1.5", "-3" or ".25"."""
        if not isinstance(text, str) or not _DECIMAL_RE.fullmatch(text.strip()):
            raise AmountParseError(f"invalid amount {text!r}")
        try:
            value = Decimal(text.strip())
        except InvalidOperation as e:
            raise AmountParseError(f"invalid amount {text!r}") from e
        return cls(_check_bounds(value))

    @property
    def minor_units(self) -> int:
        return int(self.value.scaleb(DECIMAL_PLACES))

    def is_negative(self) -> bool:
        return self.value < 0

    def checked_add(self, other: "Amount") -> "Amount":
        return Amount(_check_bounds(self.value + other.value))

    def checked_sub(self, other: "Amount") -> "Amount":
        """Subtract, raising AmountUnderflowError if the result would be negative."""
        result = _check_bounds(self.value - other.value)
        if result < 0:
            raise AmountUnderflowError(f"{self} - {other} is negative")
        return Amount(result)

    def to_display_string(self) -> str:
        return f"{self.value:.{DECIMAL_PLACES}f}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Amount):
            return NotImplemented
        return self.value == other.value

    def __lt__(self, other: "Amount") -> bool:
        if not isinstance(other, Amount):
            return NotImplemented
        return self.value < other.value

    def __hash__(self) -> int:
        return hash(self.value)

    def __str__(self) -> str:
        return self.to_display_string()

    def __repr__(self) -> str:
        return f"Amount({self.to_display_string()})"
