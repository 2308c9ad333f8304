import pytest

from smart_contracts.vehicle_registry.errors import (
    ERRORS_BY_REASON,
    InsufficientPaymentError,
    InvalidPaymentError,
    InvalidVinError,
    NotListedError,
    RegistryError,
    SelfPurchaseError,
    TransferFailureError,
    error_from_exception,
)


class FakeLogicError(Exception):
    def __init__(self, message, lines):
        super().__init__(message)
        self.lines = lines

    def trace(self):
        return "\n".join(self.lines)


def test_every_reason_has_its_own_class():
    assert len(set(ERRORS_BY_REASON.values())) == len(ERRORS_BY_REASON)
    for reason, cls in ERRORS_BY_REASON.items():
        assert issubclass(cls, RegistryError)
        assert cls.reason == reason


def test_reason_found_in_trace():
    exc = FakeLogicError(
        "Txn ABC had error 'assert failed pc=412' at PC 412",
        ["    frame_dig -1", "    !=", "    assert // SelfPurchase\t\t<-- Error"],
    )
    error = error_from_exception(exc)
    assert isinstance(error, SelfPurchaseError)
    assert error.reason == "SelfPurchase"


def test_only_the_failing_line_decides_the_reason():
    exc = FakeLogicError(
        "Txn ABC had error 'assert failed pc=97' at PC 97",
        [
            "    box_len",
            "    bury 1",
            "    assert // NotCertified",
            "    frame_dig -3",
            "    len",
            "    pushint 17 // 17",
            "    ==",
            "    assert // InvalidVin\t\t<-- Error",
            "    frame_dig -2",
            "    len",
            "    assert // MissingField",
        ],
    )
    assert isinstance(error_from_exception(exc), InvalidVinError)


@pytest.mark.parametrize(
    "preceding, failing, expected",
    [
        ("SelfPurchase", "InvalidPayment", InvalidPaymentError),
        ("InvalidPayment", "InsufficientPayment", InsufficientPaymentError),
    ],
)
def test_neighbouring_asserts_do_not_mask_the_failure(preceding, failing, expected):
    exc = FakeLogicError(
        "assert failed",
        [
            "    !=",
            f"    assert // {preceding}",
            "    gtxns Sender",
            "    txn Sender",
            "    ==",
            f"    assert // {failing}\t\t<-- Error",
        ],
    )
    assert isinstance(error_from_exception(exc), expected)


def test_reason_found_in_message():
    error = error_from_exception(RuntimeError("logic eval error: assert failed: NotListed"))
    assert isinstance(error, NotListedError)


@pytest.mark.parametrize(
    "message",
    [
        "logic eval error: overspend (account X, data {...})",
        "account Y balance 99000 below min 100000 (0 assets)",
    ],
)
def test_inner_payment_rejections_are_transfer_failures(message):
    exc = FakeLogicError(message, ["    intc_0 // 0", "    itxn_field Fee", "    itxn_submit\t\t<-- Error"])
    assert isinstance(error_from_exception(exc), TransferFailureError)


def test_inner_rejection_without_trace_is_a_transfer_failure():
    error = error_from_exception(RuntimeError("logic eval error: overspend (account X, data {...})"))
    assert isinstance(error, TransferFailureError)


def test_buyer_short_of_funds_is_not_a_transfer_failure():
    exc = RuntimeError("TransactionPool.Remember: transaction TX1: overspend (account BUYER, data {...})")
    assert error_from_exception(exc) is None


def test_unknown_failures_are_not_translated():
    assert error_from_exception(ConnectionError("node unreachable")) is None


def test_error_carries_user_message():
    error = NotListedError()
    assert str(error) == "This vehicle is not for sale"
    assert error.detail is None
