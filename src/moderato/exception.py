class ModeratoError(Exception):
    """Base exception for moderato"""

    pass


class ConfigurationError(ModeratoError):
    """Raised when a source or connection is not set up the way moderato
    expects it"""

    pass


class TransactionError(ModeratoError):
    """Base exception for transaction errors"""

    pass


class ThreadAffinityViolation(TransactionError):
    """Raised when a transaction is driven from a context other than the
    one that started it"""

    pass


class InvalidState(TransactionError):
    """Raised when operating on a transaction that is already finished"""

    pass


class UnsupportedOperation(TransactionError):
    """Raised when transaction control is attempted through a guarded
    connection"""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            f"{operation} is not supported on a connection owned by a "
            "nested transaction"
        )
