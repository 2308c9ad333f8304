from collections.abc import Callable, Generator
from contextlib import AbstractContextManager

import pytest
from algopy import Account, String, UInt64, arc4
from algopy_testing import AlgopyTestContext, algopy_testing_context

from smart_contracts.vehicle_registry.contract import VehicleRegistry

VIN = "1HGBH41JXMN109186"

ActAs = Callable[[Account], AbstractContextManager]


@pytest.fixture()
def context() -> Generator[AlgopyTestContext, None, None]:
    with algopy_testing_context() as ctx:
        yield ctx


@pytest.fixture()
def act_as(context: AlgopyTestContext) -> ActAs:
    """Run the next app call with ``account`` as Txn.sender."""

    def _act_as(account: Account) -> AbstractContextManager:
        return context.txn.create_group(active_txn_overrides={"sender": account})

    return _act_as


@pytest.fixture()
def admin(context: AlgopyTestContext) -> Account:
    return context.any.account()


@pytest.fixture()
def constructor(context: AlgopyTestContext) -> Account:
    return context.any.account()


@pytest.fixture()
def buyer(context: AlgopyTestContext) -> Account:
    return context.any.account()


@pytest.fixture()
def registry(context: AlgopyTestContext, act_as: ActAs, admin: Account, constructor: Account) -> VehicleRegistry:
    """A registry created by ``admin`` with ``constructor`` certified."""
    contract = VehicleRegistry()
    with act_as(admin):
        contract.create()
    with act_as(admin):
        contract.add_constructor(arc4.Address(constructor))
    return contract


@pytest.fixture()
def vehicle_id(registry: VehicleRegistry, act_as: ActAs, constructor: Account) -> UInt64:
    with act_as(constructor):
        return registry.create_vehicle(String(VIN), String("Tesla"), String("Model S"))
