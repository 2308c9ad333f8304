"""
Off-chain view of the VehicleRegistry storage layout and event logs.

Box names follow the contract's default key prefixes (the BoxMap attribute
name) followed by the encoded key. Values are ARC-4 encoded.
"""

import re
from dataclasses import dataclass, field

from algosdk import abi, encoding

from smart_contracts.vehicle_registry.errors import InvalidVinError

VEHICLES_PREFIX = b"vehicles"
OWNERS_PREFIX = b"owners"
CONSTRUCTORS_PREFIX = b"constructors"
VIN_INDEX_PREFIX = b"vin_index"

VIN_LENGTH = 17
# ISO 3779: digits and capitals, I/O/Q excluded to avoid confusion with 1/0.
VIN_RE = re.compile(r"^[A-HJ-NPR-Z0-9]{17}$")

VEHICLE_RECORD_TYPE = abi.ABIType.from_string("(string,string,string,bool,uint64,uint64)")
ADDRESS_TYPE = abi.AddressType()
UINT64_TYPE = abi.UintType(64)


@dataclass
class Vehicle:
    vehicle_id: int
    vin: str
    make: str
    model: str
    for_sale: bool
    price: int
    history_length: int
    owner: str | None = None


@dataclass
class RegistryEvent:
    name: str
    txid: str
    round: int
    log_index: int
    args: dict = field(default_factory=dict)

    @property
    def key(self) -> tuple[str, int]:
        return self.txid, self.log_index


def validate_vin(vin: str) -> str:
    """Normalize a VIN to upper case and check it, raising InvalidVinError."""
    normalized = vin.strip().upper()
    if not VIN_RE.match(normalized):
        raise InvalidVinError(f"Invalid VIN: {vin!r}")
    return normalized


def _itob(value: int) -> bytes:
    return value.to_bytes(8, "big")


def vehicle_box_name(vehicle_id: int) -> bytes:
    return VEHICLES_PREFIX + _itob(vehicle_id)


def owner_box_name(vehicle_id: int, index: int) -> bytes:
    return OWNERS_PREFIX + _itob(vehicle_id) + _itob(index)


def constructor_box_name(address: str) -> bytes:
    return CONSTRUCTORS_PREFIX + encoding.decode_address(address)


def vin_box_name(vin: str) -> bytes:
    return VIN_INDEX_PREFIX + vin.encode("utf-8")


def vehicle_id_from_box_name(name: bytes) -> int | None:
    """Return the vehicle id for a ``vehicles`` box, None for any other box."""
    if not name.startswith(VEHICLES_PREFIX) or len(name) != len(VEHICLES_PREFIX) + 8:
        return None
    return int.from_bytes(name[len(VEHICLES_PREFIX):], "big")


def decode_vehicle(vehicle_id: int, value: bytes) -> Vehicle:
    vin, make, model, for_sale, price, history_length = VEHICLE_RECORD_TYPE.decode(value)
    return Vehicle(
        vehicle_id=vehicle_id,
        vin=vin,
        make=make,
        model=model,
        for_sale=for_sale,
        price=price,
        history_length=history_length,
    )


def decode_address(value: bytes) -> str:
    """Account values are stored as the raw 32-byte public key."""
    return encoding.encode_address(value)


def decode_uint64(value: bytes) -> int:
    return int.from_bytes(value, "big")


# ── ARC-28 events ────────────────────────────────────────────────────────────
# name → ((field, abi type), ...), in the order the contract declares them.
EVENT_FIELDS: dict[str, tuple[tuple[str, str], ...]] = {
    "ConstructorAdded": (("account", "address"),),
    "ConstructorRemoved": (("account", "address"),),
    "VehicleCreated": (("vehicle_id", "uint64"), ("constructor", "address"), ("vin", "string")),
    "VehicleListed": (("vehicle_id", "uint64"), ("seller", "address"), ("price", "uint64")),
    "VehicleCancelled": (("vehicle_id", "uint64"), ("seller", "address")),
    "VehicleSold": (
        ("vehicle_id", "uint64"),
        ("seller", "address"),
        ("buyer", "address"),
        ("price", "uint64"),
    ),
}


def event_signature(name: str) -> str:
    types = ",".join(abi_type for _, abi_type in EVENT_FIELDS[name])
    return f"{name}({types})"


def event_selector(name: str) -> bytes:
    return encoding.checksum(event_signature(name).encode("utf-8"))[:4]


_EVENTS_BY_SELECTOR = {event_selector(name): name for name in EVENT_FIELDS}


def decode_event(log: bytes, txid: str = "", round_: int = 0, log_index: int = 0) -> RegistryEvent | None:
    """Decode one application log entry, None if it is not a registry event."""
    name = _EVENTS_BY_SELECTOR.get(log[:4])
    if name is None:
        return None
    fields = EVENT_FIELDS[name]
    tuple_type = abi.ABIType.from_string("(" + ",".join(t for _, t in fields) + ")")
    values = tuple_type.decode(log[4:])
    return RegistryEvent(
        name=name,
        txid=txid,
        round=round_,
        log_index=log_index,
        args={field_name: value for (field_name, _), value in zip(fields, values)},
    )
