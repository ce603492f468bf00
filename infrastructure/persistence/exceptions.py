"""Persistence adapter exceptions.

Raised inside the adapters and caught at their public methods; the entity
store never sees them.
"""


class PersistenceError(Exception):
    """Base persistence exception."""
    pass


class PersistenceUnavailableError(PersistenceError):
    """Storage could not be read or written (I/O, network)."""
    pass


class MalformedDocumentError(PersistenceError):
    """Stored document is not a JSON array of records."""
    pass


class ConfigurationError(PersistenceError):
    """Persistence configuration error."""
    pass
