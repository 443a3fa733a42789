"""Transport failure shared by the version-control and object-storage boundaries."""


class TransportError(Exception):
    """Raised when a version-control query or a storage put fails."""
