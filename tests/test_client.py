from unittest.mock import MagicMock

import pytest

from smart_contracts.vehicle_registry.client import SEND_PARAMS, VehicleRegistryClient
from smart_contracts.vehicle_registry.errors import InvalidPriceError, InvalidVinError, NotOwnerError

SENDER = "SELLER"
VIN = "1HGBH41JXMN109186"


@pytest.fixture()
def app_client():
    client = MagicMock()
    client.app_id = 1234
    client.app_address = "APPADDRESS"
    return client


@pytest.fixture()
def registry(app_client):
    return VehicleRegistryClient(app_client, sender=SENDER)


def returns(app_client, value):
    app_client.send.call.return_value = MagicMock(abi_return=value)


def last_call(app_client):
    params = app_client.send.call.call_args.args[0]
    return params.method, params.args


def test_create_vehicle_normalizes_vin(registry, app_client):
    returns(app_client, 7)
    assert registry.create_vehicle(VIN.lower(), " Tesla ", "Model S") == 7
    assert last_call(app_client) == ("create_vehicle", [VIN, "Tesla", "Model S"])
    assert app_client.send.call.call_args.kwargs["send_params"] == SEND_PARAMS


def test_create_vehicle_rejects_bad_vin_before_sending(registry, app_client):
    with pytest.raises(InvalidVinError):
        registry.create_vehicle("VIN123", "Toyota", "Corolla")
    app_client.send.call.assert_not_called()


def test_get_vehicle_accepts_struct_as_dict(registry, app_client):
    returns(app_client, {
        "vin": VIN, "make": "Tesla", "model": "Model S",
        "for_sale": True, "price": 1000, "history_length": 1,
    })
    vehicle = registry.get_vehicle(1)
    assert vehicle.vin == VIN
    assert vehicle.for_sale is True
    assert vehicle.price == 1000


def test_get_vehicle_accepts_struct_as_tuple(registry, app_client):
    returns(app_client, [VIN, "Tesla", "Model S", False, 0, 3])
    vehicle = registry.get_vehicle(1)
    assert vehicle.history_length == 3
    assert vehicle.for_sale is False


def test_list_for_sale_requires_positive_price(registry, app_client):
    with pytest.raises(InvalidPriceError):
        registry.list_for_sale(1, 0)
    app_client.send.call.assert_not_called()

    registry.list_for_sale(1, 1000)
    assert last_call(app_client) == ("list_for_sale", [1, 1000])


def test_buy_vehicle_groups_payment_to_app_account(registry, app_client):
    payment = object()
    app_client.algorand.create_transaction.payment.return_value = payment

    registry.buy_vehicle(1, 1500)

    payment_params = app_client.algorand.create_transaction.payment.call_args.args[0]
    assert payment_params.sender == SENDER
    assert payment_params.receiver == "APPADDRESS"
    assert payment_params.amount.micro_algo == 1500
    assert last_call(app_client) == ("buy_vehicle", [1, payment])


def test_contract_rejection_is_translated(registry, app_client):
    app_client.send.call.side_effect = RuntimeError("logic eval error: assert failed // NotOwner")
    with pytest.raises(NotOwnerError) as excinfo:
        registry.cancel_listing(1)
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_unrelated_failures_propagate(registry, app_client):
    app_client.send.call.side_effect = ConnectionError("node unreachable")
    with pytest.raises(ConnectionError):
        registry.is_constructor("ADDR")


def test_reads_return_plain_values(registry, app_client):
    returns(app_client, [3, 5])
    assert registry.list_vehicles_for_sale() == [3, 5]
    returns(app_client, ["A", "B"])
    assert registry.get_ownership_history(3) == ["A", "B"]
    returns(app_client, True)
    assert registry.is_constructor("A") is True
