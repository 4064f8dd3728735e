# product_aggregator/clients/errors.py

"""Error types raised while talking to upstream sources."""


class AggregatorError(Exception):
    """Base class for every error this package raises on purpose."""

    @property
    def kind(self) -> str:
        """Class name, used as the error tag in JSON payloads."""
        return type(self).__name__


class InvalidRequest(AggregatorError):
    """The inbound path or query could not be translated."""


class SourceError(AggregatorError):
    """A source (or the detail endpoint) could not deliver products."""

    def __init__(self, source_id: str, message: str) -> None:
        self.source_id = source_id
        self.message = message
        super().__init__(f"{source_id}: {message}")


class SourceUnavailable(SourceError):
    """Transport failure or deadline exceeded."""


class SourceBadStatus(SourceError):
    """The source answered with a non-200 status."""

    def __init__(self, source_id: str, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(source_id, f"status code {status_code}")


class SourceDecodeError(SourceError):
    """The response body does not match the Product shape."""
