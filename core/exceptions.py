class StoreError(Exception):
    """Raised inside a store backend when a record cannot be read or written."""

    def __init__(self, message: str, key: str = None):
        self.message = message
        self.key = key
        full_message = message
        if key:
            full_message += f" [key: {key}]"
        super().__init__(full_message)


class StartupError(Exception):
    """Raised when the proxy cannot be configured and must not start serving."""
    pass
