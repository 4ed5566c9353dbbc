"""Service layer exceptions."""


class StoresError(Exception):
    """Base class for all hotel stores errors."""
    pass


class NotFoundError(StoresError):
    """Requested record does not exist."""
    pass


class ValidationError(StoresError):
    """Input rejected before any state change."""
    pass


class InvalidStateError(StoresError):
    """Operation not allowed from the record's current status."""
    pass


class PermissionDeniedError(StoresError):
    """Principal lacks the required capability."""

    def __init__(self, principal_name: str, permission: str):
        super().__init__(f"{principal_name} does not have permission '{permission}'")
        self.principal_name = principal_name
        self.permission = permission


class StorageError(StoresError):
    """Storage backend failed to read or write a collection."""
    pass


class CorruptPayloadError(StorageError):
    """Stored collection could not be parsed."""
    pass
