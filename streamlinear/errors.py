"""Exception types raised across streamlinear."""


class StreamlinearError(RuntimeError):
    """Base class for every error the adapters render as ``Error: ...``."""


class ConfigurationError(StreamlinearError):
    """No usable Linear credential. Raised before any request is sent."""


class RequestError(StreamlinearError, ValueError):
    """Malformed action request: unknown action, missing field, bad priority."""


class LinearAPIError(StreamlinearError):
    """The Linear API answered with a GraphQL ``errors`` list."""

    def __init__(self, messages: list[str]) -> None:
        self.messages = messages
        super().__init__("\n".join(messages))
