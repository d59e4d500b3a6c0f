class DemarcateError(Exception):
    """Base exception for all errors raised by demarcate"""

    ...


class ConfigurationError(DemarcateError):
    """Raised when the data source or transaction manager cannot be
    resolved from the given configuration"""

    ...


class ProviderError(DemarcateError):
    """Raised when a connection provider fails to supply a connection"""

    ...
