"""Dispatch engine error types."""


class ConfigurationError(ValueError):
    """A handler method cannot be registered for the requested capability.

    Raised at registration time by the validator and adapter factory, and
    by providers in strict mode with every failure aggregated.
    """

    def __init__(self, message: str, method: str | None = None, errors: list | None = None):
        self.method = method
        self.errors = list(errors or [])
        super().__init__(message)


class NormalizationError(ConfigurationError):
    """A handler returned a value that has no canonical result form.

    Surfaced at the first invocation that produces such a value.
    """

    pass


class BindingError(ValueError):
    """A required argument is missing or cannot be extracted from the request."""

    def __init__(self, message: str, parameter: str | None = None):
        self.parameter = parameter
        super().__init__(message)
