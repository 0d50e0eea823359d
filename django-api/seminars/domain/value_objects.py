"""Domain primitives that enforce validity at creation time."""

from dataclasses import dataclass
from typing import Self

from seminars.domain.errors import InvalidInputError


def _require_int(name: str, value: object) -> int:
    # bool is an int subclass but never a valid amount
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{name} must be an integer")
    return value


@dataclass(frozen=True)
class _OpaqueId:
    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value.strip():
            raise InvalidInputError(f"{type(self).__name__} cannot be empty")

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=value.strip() if isinstance(value, str) else value)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SessionId(_OpaqueId):
    """Identifier of a seminar session."""


@dataclass(frozen=True)
class TicketTypeId(_OpaqueId):
    """Identifier of a ticket type."""


@dataclass(frozen=True)
class OrderId(_OpaqueId):
    """Identifier of an order."""


@dataclass(frozen=True)
class ParticipantId(_OpaqueId):
    """Identifier of a participant."""


@dataclass(frozen=True)
class Money:
    """Amount in the minor currency unit (yen has no subunit)."""

    amount: int

    def __post_init__(self) -> None:
        _require_int("amount", self.amount)
        if self.amount < 0:
            raise InvalidInputError("Money amount cannot be negative")

    def __str__(self) -> str:
        return f"¥{self.amount:,}"


@dataclass(frozen=True)
class TaxRate:
    """Whole-number tax percentage between 0 and 100."""

    percent: int

    def __post_init__(self) -> None:
        _require_int("tax rate", self.percent)
        if not 0 <= self.percent <= 100:
            raise InvalidInputError("Tax rate must be between 0 and 100")


@dataclass(frozen=True)
class Quantity:
    """Positive ticket count."""

    value: int

    def __post_init__(self) -> None:
        _require_int("quantity", self.value)
        if self.value < 1:
            raise InvalidInputError("Quantity must be at least 1")
