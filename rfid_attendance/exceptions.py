class TapCounterError(Exception):
    """Base exception for the tap counter."""
    pass


class ReaderInitError(TapCounterError):
    """Raised when the RFID reader cannot be initialised."""
    pass


class DatabaseConnectError(TapCounterError):
    """Raised when the initial database connection fails."""
    pass
