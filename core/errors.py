class StorageError(RuntimeError):
    """Writing a record store or log failed (disk full, permissions, ...)."""


class StoreCorruptedError(StorageError):
    """Existing mailbox content could not be read back as a JSON array."""
