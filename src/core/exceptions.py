"""
Errors raised while booking a trade order.

Everything derived from OrderError is reported to the caller. Lookup and
validation errors are raised before any row is written.
"""


class OrderError(Exception):
    retryable: bool = False


class UnknownSecurity(OrderError):
    def __init__(self, ticker: str) -> None:
        super().__init__(f"{ticker} not found in reference data service")
        self.ticker = ticker


class UnknownAccount(OrderError):
    def __init__(self, account_id: int) -> None:
        super().__init__(f"Account {account_id} not found in account service")
        self.account_id = account_id


class InvalidOrder(OrderError):
    pass


class StorageFailure(OrderError):
    retryable = True


class LookupUnavailable:
    """Marks a lookup that failed for transport reasons (timeout, 5xx, refused connection)."""

    retryable = True


class SecurityLookupUnavailable(UnknownSecurity, LookupUnavailable):
    retryable = True

    def __init__(self, ticker: str) -> None:
        super().__init__(ticker)
        self.args = (f"Reference data lookup for {ticker} is unavailable",)


class AccountLookupUnavailable(UnknownAccount, LookupUnavailable):
    retryable = True

    def __init__(self, account_id: int) -> None:
        super().__init__(account_id)
        self.args = (f"Account lookup for {account_id} is unavailable",)


class LookupTransportError(Exception):
    """Raised by lookup clients when the remote service could not answer."""


class PublishFailure(Exception):
    """Raised by event publishers; never propagated past the OrderProcessor."""
