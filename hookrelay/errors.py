"""Error taxonomy for the relay."""


class RelayError(Exception):
    """Base class for all relay errors"""
    pass


class ConfigError(RelayError):
    """Raised when the config file is missing, unreadable or malformed"""
    pass


class ChatSessionError(RelayError):
    """Raised when the chat backend cannot be started"""
    pass


class ParseError(RelayError):
    """Raised when an inbound request body cannot be normalized"""
    pass


class UnsupportedContentType(ParseError):
    """Raised for request content types other than JSON or form-encoded"""

    def __init__(self, content_type: str):
        self.content_type = content_type
        super().__init__(f"Unknown content type: {content_type or '(none)'}")


class MalformedPayload(ParseError):
    """Raised when the payload JSON cannot be decoded into a message.

    The underlying decode error is kept as ``__cause__``.
    """

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Malformed payload: {detail}")


class RoutingError(RelayError):
    """Raised when a request cannot be matched to a webhook registration"""
    pass


class UnknownToken(RoutingError):
    """Raised when no webhook registration carries the path token"""

    def __init__(self):
        super().__init__("Invalid token")


class DeliverySendError(RelayError):
    """Raised when the chat backend rejects or fails a send"""
    pass
