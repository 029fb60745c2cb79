"""
Domain errors raised by the EZPay services.

Each error carries the HTTP status it maps to at the API boundary; the
services themselves never build responses.
"""


class EzPayError(Exception):
    """Base class for every error the services raise on purpose."""

    status_code = 500
    kind = "InternalError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ResourceNotFoundError(EzPayError):
    """Entity absent, or not owned by the caller."""

    status_code = 404
    kind = "NotFound"


class AccountNotFoundError(ResourceNotFoundError):
    pass


class TransactionNotFoundError(ResourceNotFoundError):
    pass


class InsufficientBalanceError(EzPayError):
    status_code = 400
    kind = "InsufficientBalance"


class InvalidAmountError(EzPayError):
    status_code = 400
    kind = "InvalidAmount"


class InvalidFormatError(EzPayError):
    status_code = 400
    kind = "InvalidFormat"


class InvalidPinError(EzPayError):
    status_code = 401
    kind = "InvalidPin"


class InvalidStateError(EzPayError):
    """Operation attempted on a transaction that is no longer pending."""

    status_code = 409
    kind = "InvalidState"


class ConcurrentUpdateError(EzPayError):
    """A balance row changed between read and conditional write."""

    status_code = 409
    kind = "ConcurrentUpdate"
