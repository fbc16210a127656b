"""Domain errors raised by the integration and synchronization engine.

Every error carries the pipeline ``stage`` it came from and the HTTP status
the API layer renders it with. None of them are fatal to the process.
"""


class FeedError(Exception):
    status_code = 500
    title = "Feed Error"

    def __init__(self, message: str, *, stage: str | None = None):
        super().__init__(message)
        self.message = message
        self.stage = stage


class ConfigMissing(FeedError):
    """A required secret, id or URL is not configured."""

    status_code = 500
    title = "Configuration Missing"


class InvalidState(FeedError):
    """The OAuth handshake state failed signature, expiry or shape checks."""

    status_code = 400
    title = "Invalid State"


class ExchangeFailed(FeedError):
    """The token endpoint rejected the authorization code."""

    status_code = 502
    title = "Token Exchange Failed"


class FetchFailed(FeedError):
    """Profile or media retrieval from the provider failed."""

    status_code = 502
    title = "Fetch Failed"

    def __init__(self, message: str, *, stage: str | None = None, status: int | None = None, body: str | None = None):
        super().__init__(message, stage=stage)
        self.status = status
        self.body = body


class PublishFailed(FeedError):
    """The storefront rejected (or could not receive) the published payload."""

    status_code = 502
    title = "Publish Failed"


class Unauthorized(FeedError):
    """A request could not be attributed to a tenant."""

    status_code = 401
    title = "Unauthorized"


class NotConnected(FeedError):
    """The shop has no Instagram account or no Admin API installation."""

    status_code = 404
    title = "Not Connected"
