"""
Domain errors.

Every failure the core reports is one of these types. None of them carries
partial state: when one is raised, nothing was changed.
"""


class RepasoError(Exception):
    """Base class for all repaso errors."""


class InvalidGrade(RepasoError, ValueError):
    """Grade outside [0, 5] or not an integer."""

    def __init__(self, grade: object):
        self.grade = grade
        super().__init__(f"Grade must be an integer between 0 and 5, got {grade!r}")


class InvalidSessionLimit(RepasoError, ValueError):
    """Requested session size is not a positive integer."""

    def __init__(self, limit: object):
        self.limit = limit
        super().__init__(f"Session limit must be a positive integer, got {limit!r}")


class CardValidationError(RepasoError, ValueError):
    """A card record violates its schema or scheduling invariants."""


class CardNotFound(RepasoError, LookupError):
    def __init__(self, card_id: str):
        self.card_id = card_id
        super().__init__(f"Card not found: {card_id}")


class AccessDenied(RepasoError):
    def __init__(self, card_id: str, owner_id: str):
        self.card_id = card_id
        self.owner_id = owner_id
        super().__init__(f"Card {card_id} does not belong to {owner_id}")


class ConcurrentUpdateError(RepasoError):
    """The stored card changed between read and write."""

    def __init__(self, card_id: str, expected_version: int, actual_version: int | None = None):
        self.card_id = card_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Card {card_id} was modified concurrently "
            f"(expected version {expected_version}, found {actual_version})"
        )
