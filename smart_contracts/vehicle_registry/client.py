"""
Python bindings for a deployed VehicleRegistry application.

Wraps an ``algokit_utils.AppClient`` so callers work with plain Python values
and documented ``RegistryError`` subclasses instead of ABI tuples and raw
logic errors.
"""

import logging
from pathlib import Path
from typing import Any

from algokit_utils import (
    AlgoAmount,
    AlgorandClient,
    AppClient,
    AppClientMethodCallParams,
    PaymentParams,
)

from smart_contracts.vehicle_registry.codec import Vehicle, validate_vin
from smart_contracts.vehicle_registry.errors import InvalidPriceError, error_from_exception

logger = logging.getLogger(__name__)

ARC56_PATH = Path(__file__).parent.parent / "artifacts/vehicle_registry/VehicleRegistry.arc56.json"

# Inner payments are paid for by the outer call (fee pooling), and box
# references are filled in by simulating the call first.
SEND_PARAMS = {
    "populate_app_call_resources": True,
    "cover_app_call_inner_transaction_fees": True,
}
MAX_FEE = AlgoAmount.from_micro_algo(5_000)


def _field(value: Any, name: str, index: int) -> Any:
    """Read a struct field from either a decoded dict or a positional tuple."""
    if isinstance(value, dict):
        return value[name]
    return value[index]


class VehicleRegistryClient:
    def __init__(self, app_client: AppClient, sender: str | None = None) -> None:
        self.app_client = app_client
        self.sender = sender

    @classmethod
    def from_network(
        cls,
        algorand: AlgorandClient,
        app_id: int,
        sender: str,
        signer: Any = None,
        app_spec: str | None = None,
    ) -> "VehicleRegistryClient":
        app_client = algorand.client.get_app_client_by_id(
            app_spec=app_spec or ARC56_PATH.read_text(),
            app_id=app_id,
            default_sender=sender,
            default_signer=signer,
        )
        return cls(app_client, sender=sender)

    @property
    def app_id(self) -> int:
        return self.app_client.app_id

    def _call(self, method: str, *args: Any) -> Any:
        params = AppClientMethodCallParams(method=method, args=list(args), sender=self.sender, max_fee=MAX_FEE)
        try:
            result = self.app_client.send.call(params, send_params=SEND_PARAMS)
        except Exception as exc:
            error = error_from_exception(exc)
            if error is None:
                raise
            logger.warning("[CHAIN] %s rejected: %s", method, error.reason)
            raise error from exc
        return result.abi_return

    # ── Access control ───────────────────────────────────────────────────────

    def add_constructor(self, address: str) -> None:
        self._call("add_constructor", address)

    def remove_constructor(self, address: str) -> None:
        self._call("remove_constructor", address)

    def is_constructor(self, address: str) -> bool:
        return bool(self._call("is_constructor", address))

    def admin(self) -> str:
        return self._call("admin")

    # ── Registry ─────────────────────────────────────────────────────────────

    def create_vehicle(self, vin: str, make: str, model: str) -> int:
        """Mint a vehicle and return its id. The VIN is checked locally first."""
        vin = validate_vin(vin)
        vehicle_id = int(self._call("create_vehicle", vin, make.strip(), model.strip()))
        logger.info("[CHAIN] Vehicle #%d minted (VIN %s)", vehicle_id, vin)
        return vehicle_id

    def get_vehicle(self, vehicle_id: int) -> Vehicle:
        record = self._call("get_vehicle", vehicle_id)
        return Vehicle(
            vehicle_id=vehicle_id,
            vin=_field(record, "vin", 0),
            make=_field(record, "make", 1),
            model=_field(record, "model", 2),
            for_sale=bool(_field(record, "for_sale", 3)),
            price=int(_field(record, "price", 4)),
            history_length=int(_field(record, "history_length", 5)),
        )

    def get_vehicle_by_vin(self, vin: str) -> int:
        return int(self._call("get_vehicle_by_vin", validate_vin(vin)))

    def get_ownership_history(self, vehicle_id: int) -> list[str]:
        return list(self._call("get_ownership_history", vehicle_id))

    def current_owner_of(self, vehicle_id: int) -> str:
        return self._call("current_owner_of", vehicle_id)

    def list_vehicles_for_sale(self) -> list[int]:
        return [int(vehicle_id) for vehicle_id in self._call("list_vehicles_for_sale")]

    def vehicle_count(self) -> int:
        return int(self._call("vehicle_count"))

    # ── Marketplace ──────────────────────────────────────────────────────────

    def list_for_sale(self, vehicle_id: int, price: int) -> None:
        if price <= 0:
            raise InvalidPriceError(f"Invalid price: {price}")
        self._call("list_for_sale", vehicle_id, price)

    def cancel_listing(self, vehicle_id: int) -> None:
        self._call("cancel_listing", vehicle_id)

    def buy_vehicle(self, vehicle_id: int, amount: int) -> None:
        """
        Buy a listed vehicle, paying ``amount`` microAlgos.

        The payment is grouped in front of the application call; anything above
        the asking price comes back as an inner refund.
        """
        payment = self.app_client.algorand.create_transaction.payment(
            PaymentParams(
                sender=self.sender,
                receiver=self.app_client.app_address,
                amount=AlgoAmount.from_micro_algo(amount),
            )
        )
        self._call("buy_vehicle", vehicle_id, payment)
        logger.info("[CHAIN] Vehicle #%d bought by %s", vehicle_id, self.sender)
