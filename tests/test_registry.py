import pytest
from algopy import Account, String, UInt64
from algopy_testing import AlgopyTestContext

from smart_contracts.vehicle_registry.contract import VehicleRegistry
from tests.conftest import VIN, ActAs


def test_constructor_mints_vehicle(registry: VehicleRegistry, constructor: Account, vehicle_id: UInt64) -> None:
    assert vehicle_id == 1
    record = registry.get_vehicle(vehicle_id)
    assert record.vin.native == VIN
    assert record.make.native == "Tesla"
    assert record.model.native == "Model S"
    assert not record.for_sale.native
    assert record.price.native == 0

    history = registry.get_ownership_history(vehicle_id)
    assert [owner.native for owner in history] == [constructor]
    assert registry.current_owner_of(vehicle_id).native == constructor


def test_ids_are_sequential(registry: VehicleRegistry, act_as: ActAs, constructor: Account, vehicle_id: UInt64) -> None:
    with act_as(constructor):
        second = registry.create_vehicle(String("5YJSA1E26HF000337"), String("Renault"), String("Zoe"))
    assert second == vehicle_id + 1
    assert registry.get_vehicle_count() == 2


def test_uncertified_account_cannot_mint(context: AlgopyTestContext, registry: VehicleRegistry, act_as: ActAs) -> None:
    outsider = context.any.account()
    with pytest.raises(AssertionError, match="NotCertified"), act_as(outsider):
        registry.create_vehicle(String(VIN), String("Tesla"), String("Model S"))
    assert registry.vehicle_count.value == 0


@pytest.mark.parametrize(
    ("vin", "make", "model", "reason"),
    [
        ("VIN123", "Toyota", "Corolla", "InvalidVin"),
        ("1HGBH41JXMN1091860", "Toyota", "Corolla", "InvalidVin"),
        (VIN, "", "Corolla", "MissingField"),
        (VIN, "Toyota", "", "MissingField"),
    ],
)
def test_create_vehicle_validates_fields(
    registry: VehicleRegistry, act_as: ActAs, constructor: Account, vin: str, make: str, model: str, reason: str
) -> None:
    with pytest.raises(AssertionError, match=reason), act_as(constructor):
        registry.create_vehicle(String(vin), String(make), String(model))
    assert registry.vehicle_count.value == 0


def test_vin_is_unique(registry: VehicleRegistry, act_as: ActAs, constructor: Account, vehicle_id: UInt64) -> None:
    with pytest.raises(AssertionError, match="DuplicateVin"), act_as(constructor):
        registry.create_vehicle(String(VIN), String("Tesla"), String("Model 3"))
    assert registry.get_vehicle_by_vin(String(VIN)) == vehicle_id
    assert registry.vehicle_count.value == 1


def test_unknown_vehicle_is_not_found(registry: VehicleRegistry) -> None:
    with pytest.raises(AssertionError, match="NotFound"):
        registry.get_vehicle(UInt64(42))
    with pytest.raises(AssertionError, match="NotFound"):
        registry.get_ownership_history(UInt64(42))
    with pytest.raises(AssertionError, match="NotFound"):
        registry.current_owner_of(UInt64(42))
    with pytest.raises(AssertionError, match="NotFound"):
        registry.get_vehicle_by_vin(String("5YJSA1E26HF000337"))


def test_reads_are_idempotent(registry: VehicleRegistry, vehicle_id: UInt64) -> None:
    assert registry.get_vehicle(vehicle_id).bytes == registry.get_vehicle(vehicle_id).bytes
    assert registry.get_ownership_history(vehicle_id).bytes == registry.get_ownership_history(vehicle_id).bytes
