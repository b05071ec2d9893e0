class NotFoundError(ValueError):
    """A user, book or borrow record referenced by id does not exist."""

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity.capitalize()} not found with ID: {entity_id}")


class ConcurrencyConflict(RuntimeError):
    """Raised when an operation kept losing optimistic-lock races and gave up."""
