class LeaseStoreError(Exception):
    """Base class for failures reaching or reading the lease document."""


class StorageCorruptError(LeaseStoreError):
    """Stored lease document is not valid JSON or not a lease object."""


class StorageUnavailableError(LeaseStoreError):
    """Document store could not be reached or rejected the request."""


class ConflictError(LeaseStoreError):
    """Conditional write lost against a newer version of the document."""
