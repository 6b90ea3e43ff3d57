"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
"""

from __future__ import annotations

from collections.abc import Iterable


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated.

    ``field`` names the order attribute a UI should highlight.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class DateRangeInvalid(ValidationError):
    def __init__(self, message: str = "Order must not end before it starts") -> None:
        super().__init__(message, field="ends")


class NoArticlesSelected(ValidationError):
    def __init__(self, message: str = "At least one article must be selected") -> None:
        super().__init__(message, field="articles")


class OrderedArticlesWouldBeDropped(ValidationError):
    """Removing articles from the selection would discard member requests."""

    def __init__(self, article_ids: Iterable[str]) -> None:
        self.article_ids = tuple(sorted(article_ids))
        super().__init__(
            "Articles already ordered by members would be dropped: "
            + ", ".join(self.article_ids),
            field="articles",
        )


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class InvalidTransition(DomainException):
    """The order is not in the state the requested transition starts from."""

    def __init__(self, order_id: int | None, current: str, action: str) -> None:
        self.order_id = order_id
        self.current = current
        self.action = action
        super().__init__(
            f"Cannot {action} order #{order_id}: current state is {current}"
        )


class SettlementError(DomainException):
    """A price or allocation could not be resolved during settlement."""


class LedgerPostingFailed(DomainException):
    """A financial transaction could not be posted to a subgroup account."""


class StockAdjustmentFailed(DomainException):
    """A stock quantity change could not be recorded."""
