"""
Failure reasons raised by the VehicleRegistry contract.

The contract aborts with an ``assert`` whose message is one of the reason
codes below. Off-chain code turns the resulting logic error back into one of
these classes so callers can handle each condition separately.
"""

import re


class RegistryError(Exception):
    """Base class for every documented registry failure."""

    reason = "RegistryError"
    message = "The registry rejected the transaction"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail
        super().__init__(detail or self.message)


class UnauthorizedError(RegistryError):
    reason = "Unauthorized"
    message = "Only the registry admin can manage constructors"


class NotCertifiedError(RegistryError):
    reason = "NotCertified"
    message = "Only certified constructors can create vehicles"


class NotFoundError(RegistryError):
    reason = "NotFound"
    message = "Vehicle not found"


class NotOwnerError(RegistryError):
    reason = "NotOwner"
    message = "Only the current owner can do this"


class InvalidPriceError(RegistryError):
    reason = "InvalidPrice"
    message = "The price must be a positive amount"


class NotListedError(RegistryError):
    reason = "NotListed"
    message = "This vehicle is not for sale"


class SelfPurchaseError(RegistryError):
    reason = "SelfPurchase"
    message = "You cannot buy your own vehicle"


class InsufficientPaymentError(RegistryError):
    reason = "InsufficientPayment"
    message = "The payment does not cover the asking price"


class InvalidPaymentError(RegistryError):
    reason = "InvalidPayment"
    message = "The payment must be sent by the buyer to the registry account"


class TransferFailureError(RegistryError):
    reason = "TransferFailure"
    message = "The payment could not be delivered; nothing was changed"


class InvalidVinError(RegistryError):
    reason = "InvalidVin"
    message = "The VIN must be exactly 17 characters (A-Z, 0-9, no I, O or Q)"


class DuplicateVinError(RegistryError):
    reason = "DuplicateVin"
    message = "A vehicle with this VIN is already registered"


class MissingFieldError(RegistryError):
    reason = "MissingField"
    message = "Make and model are required"


class ReentrantError(RegistryError):
    reason = "Reentrant"
    message = "The registry is settling another sale"


ERRORS_BY_REASON: dict[str, type[RegistryError]] = {
    cls.reason: cls
    for cls in (
        UnauthorizedError,
        NotCertifiedError,
        NotFoundError,
        NotOwnerError,
        InvalidPriceError,
        NotListedError,
        SelfPurchaseError,
        InsufficientPaymentError,
        InvalidPaymentError,
        TransferFailureError,
        InvalidVinError,
        DuplicateVinError,
        MissingFieldError,
        ReentrantError,
    )
}

_REASON_RE = re.compile(r"\b(" + "|".join(ERRORS_BY_REASON) + r")\b")

# Payment rejections reported by the AVM itself.
_TRANSFER_FAILURE_RE = re.compile(r"overspend|balance \d+ below min|below min balance", re.IGNORECASE)

# algokit_utils marks the failing TEAL line in the trace window.
_ERROR_MARKER = "<-- Error"


def _failing_line(trace_text: str) -> str | None:
    for line in trace_text.splitlines():
        if _ERROR_MARKER in line:
            return line
    return None


def error_from_exception(exc: BaseException) -> RegistryError | None:
    """
    Map a failed application call onto its documented reason.

    ``algokit_utils`` logic errors carry a window of TEAL lines around the
    failing one in ``trace()``, and PuyaPy keeps assert messages as comments on
    those lines. Neighbouring asserts show up in the same window, so only the
    line marked ``<-- Error`` is searched; the whole text is searched only when
    nothing is marked.

    A payment rejection (overspend, minimum balance) is a ``TransferFailure``
    only when it comes from the registry's inner payments: the failing line is
    ``itxn_submit``, or, without a trace, the node reports it as a logic
    evaluation error. The buyer's own grouped payment failing for lack of funds
    is not a registry failure and returns ``None``.

    Returns ``None`` when the failure is not one the registry documents.
    """
    text = str(exc)
    trace = getattr(exc, "trace", None)
    failing = None
    if callable(trace):
        trace_text = trace()
        failing = _failing_line(trace_text)
        text = f"{text}\n{trace_text}"

    match = _REASON_RE.search(failing if failing is not None else text)
    if match:
        return ERRORS_BY_REASON[match.group(1)](text)

    if failing is not None:
        inner = "itxn_submit" in failing
    else:
        inner = "logic eval error" in text
    if inner and _TRANSFER_FAILURE_RE.search(text):
        return TransferFailureError(text)
    return None
