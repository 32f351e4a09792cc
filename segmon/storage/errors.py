class SegmonError(Exception):
    """Base class for store failures."""


class IdAllocationError(SegmonError):
    """The allocator could not find a free id within its attempt budget."""

    def __init__(self, attempts: int):
        super().__init__(f"Failed to generate unique ID after {attempts} attempts")
        self.attempts = attempts


class IdentifierExhaustedError(SegmonError):
    """Raised by the store when a document id could not be allocated."""

    def __init__(self, collection: str, message: str):
        super().__init__(f"Cannot create document in {collection}: {message}")
        self.collection = collection
