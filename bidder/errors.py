"""
Error taxonomy for the bidder engine.

- TransientPageError: expected element absent within its timeout
- NavigationError: the page failed to load
- InteractionError: a click, fill or submit failed
- SessionExpiredError: the marketplace session is gone
- BidCancelled: stop was requested mid-bid

The first three are non-fatal and are converted to a log line plus a state
transition where they originate.
"""


class BidderError(Exception):
    """Base exception for all bidder engine errors."""

    retryable: bool = True

    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class TransientPageError(BidderError):
    """An expected element did not show up in time."""


class NavigationError(BidderError):
    """The listing or detail page failed to load."""


class InteractionError(BidderError):
    """Clicking, filling or submitting a control failed."""


class SessionExpiredError(BidderError):
    """The marketplace session is no longer valid and could not be re-established."""

    retryable = False


class BidCancelled(BidderError):
    """Stop was requested while a bid was in progress."""

    retryable = False
