"""Exception hierarchy for the indexing engine."""


class IndexerError(Exception):
    """Base exception for indexer errors."""

    pass


class InvariantError(IndexerError):
    """Raised when a handler would violate a derived-state invariant.

    These are defects, not expected runtime conditions. The unit of work
    is discarded and the event stays unprocessed.
    """

    pass


class CounterUnderflowError(InvariantError):
    """Raised when a counter would drop below zero."""

    def __init__(self, entity_id: str, counter: str, current: int, amount: int) -> None:
        self.entity_id = entity_id
        self.counter = counter
        self.current = current
        self.amount = amount
        super().__init__(
            f"{counter} on {entity_id} cannot be decreased by {amount} (current={current})"
        )


class NegativeBalanceError(InvariantError):
    """Raised when a raw amount field would become negative."""

    def __init__(self, entity_id: str, field: str, value: int) -> None:
        self.entity_id = entity_id
        self.field = field
        self.value = value
        super().__init__(f"{field} on {entity_id} would become negative ({value})")


class MalformedEventError(IndexerError):
    """Raised when an event is missing a parameter or carries the wrong type."""

    pass
