class PushError(Exception):
    """Base class for push channel failures; carried inside a PushResult."""

    kind = "push_error"


class ChannelNotInitialized(PushError):
    """The direct-push credential was missing or invalid at startup."""

    kind = "not_initialized"


class InvalidPushAddress(PushError):
    """The address was rejected before any network call was made."""

    kind = "invalid_address"


class PushSendFailure(PushError):
    """The provider or the network rejected the send."""

    kind = "send_failed"
