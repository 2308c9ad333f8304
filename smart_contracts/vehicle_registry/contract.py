# =============================================================================
#  VehicleRegistry : Algorand Smart Contract
#  -----------------------------------------------------------------------------
#  Project   : AutoChain
#  Standard  : ARC-4  (typed ABI)  +  ARC-28  (events)
#  Language  : Algorand Python  →  compiled to AVM bytecode via PuyaPy
# =============================================================================
#
#  PURPOSE
#  -------
#  Registry and marketplace for certified vehicles. Certified constructors
#  mint vehicle records, owners list them for sale, and any other account can
#  buy a listed vehicle by grouping a payment with the application call.
#
#  STORAGE MODEL
#  -------------
#  Global state
#    admin           : Account that created the application
#    vehicle_count   : id of the last minted vehicle (ids start at 1)
#    settling        : re-entrancy guard, set while funds are moving
#
#  Box storage (default key prefix = attribute name)
#    constructors    : Account            →  bool
#    vehicles        : UInt64 (id)        →  VehicleRecord
#    owners          : itob(id)+itob(idx) →  Account
#    vin_index       : String (VIN)       →  UInt64 (id)
#
#  Ownership history is stored one box per entry so that a sale never has to
#  resize an existing box. Index 0 is the minting constructor, index
#  history_length - 1 is the current owner.
#
#  ATOMICITY
#  ---------
#  Every check runs before the first write. If an assert fails, or one of the
#  inner payments is rejected, the AVM discards the whole transaction group:
#  the buyer's payment, the ownership change and the listing reset together.
#
# =============================================================================

from algopy import (
    Account,
    ARC4Contract,
    BoxMap,
    Bytes,
    Global,
    GlobalState,
    String,
    Txn,
    UInt64,
    arc4,
    gtxn,
    itxn,
    op,
    subroutine,
    urange,
)

VIN_LENGTH = 17


class VehicleRecord(arc4.Struct):
    vin: arc4.String
    make: arc4.String
    model: arc4.String
    for_sale: arc4.Bool
    price: arc4.UInt64
    history_length: arc4.UInt64


# ── ARC-28 events ────────────────────────────────────────────────────────────
class ConstructorAdded(arc4.Struct):
    account: arc4.Address


class ConstructorRemoved(arc4.Struct):
    account: arc4.Address


class VehicleCreated(arc4.Struct):
    vehicle_id: arc4.UInt64
    constructor: arc4.Address
    vin: arc4.String


class VehicleListed(arc4.Struct):
    vehicle_id: arc4.UInt64
    seller: arc4.Address
    price: arc4.UInt64


class VehicleCancelled(arc4.Struct):
    vehicle_id: arc4.UInt64
    seller: arc4.Address


class VehicleSold(arc4.Struct):
    vehicle_id: arc4.UInt64
    seller: arc4.Address
    buyer: arc4.Address
    price: arc4.UInt64


@subroutine
def history_key(vehicle_id: UInt64, index: UInt64) -> Bytes:
    return op.itob(vehicle_id) + op.itob(index)


class VehicleRegistry(ARC4Contract):
    """
    On-chain registry of certified vehicles and their ownership history.

    Deployment: one instance per network. The creating account becomes the
    admin and is the only account allowed to manage the constructor roster.
    """

    def __init__(self) -> None:
        self.admin = GlobalState(Account)
        self.vehicle_count = GlobalState(UInt64(0))
        self.settling = GlobalState(False)

        self.constructors = BoxMap(Account, bool)
        self.vehicles = BoxMap(UInt64, VehicleRecord)
        self.owners = BoxMap(Bytes, Account)
        self.vin_index = BoxMap(String, UInt64)

    @arc4.abimethod(create="require")
    def create(self) -> None:
        """Record the creating account as the registry admin."""
        self.admin.value = Txn.sender

    # ── Access control ───────────────────────────────────────────────────────

    @arc4.abimethod
    def add_constructor(self, account: arc4.Address) -> None:
        """
        Certify ``account`` as a vehicle constructor.

        Admin only. Certifying an account that is already certified changes
        nothing and emits no event.
        """
        self._only_admin()
        self._not_settling()
        if account.native not in self.constructors:
            self.constructors[account.native] = True
            arc4.emit(ConstructorAdded(arc4.Address(account.native)))

    @arc4.abimethod
    def remove_constructor(self, account: arc4.Address) -> None:
        """Revoke a certification. Admin only; a no-op for non-members."""
        self._only_admin()
        self._not_settling()
        if account.native in self.constructors:
            del self.constructors[account.native]
            arc4.emit(ConstructorRemoved(arc4.Address(account.native)))

    @arc4.abimethod(readonly=True)
    def is_constructor(self, account: arc4.Address) -> bool:
        return account.native in self.constructors

    @arc4.abimethod(readonly=True, name="admin")
    def get_admin(self) -> arc4.Address:
        return arc4.Address(self.admin.value)

    # ── Vehicle registry ─────────────────────────────────────────────────────

    @arc4.abimethod
    def create_vehicle(self, vin: String, make: String, model: String) -> UInt64:
        """
        Mint a new vehicle record owned by the calling constructor.

        Parameters
        ----------
        vin : String
            17-character vehicle identification number, unique in the registry.
        make, model : String
            Free-form, non-empty, immutable once minted.

        Returns
        -------
        UInt64
            The sequential id allocated to the vehicle.
        """
        self._not_settling()
        assert Txn.sender in self.constructors, "NotCertified"
        assert vin.bytes.length == VIN_LENGTH, "InvalidVin"
        assert make.bytes.length > 0, "MissingField"
        assert model.bytes.length > 0, "MissingField"
        assert vin not in self.vin_index, "DuplicateVin"

        vehicle_id = self.vehicle_count.value + 1
        self.vehicle_count.value = vehicle_id
        self.vehicles[vehicle_id] = VehicleRecord(
            vin=arc4.String(vin),
            make=arc4.String(make),
            model=arc4.String(model),
            for_sale=arc4.Bool(False),
            price=arc4.UInt64(0),
            history_length=arc4.UInt64(1),
        )
        self.owners[history_key(vehicle_id, UInt64(0))] = Txn.sender
        self.vin_index[vin] = vehicle_id

        arc4.emit(VehicleCreated(arc4.UInt64(vehicle_id), arc4.Address(Txn.sender), arc4.String(vin)))
        return vehicle_id

    @arc4.abimethod(readonly=True)
    def get_vehicle(self, vehicle_id: UInt64) -> VehicleRecord:
        return self._vehicle(vehicle_id)

    @arc4.abimethod(readonly=True)
    def get_vehicle_by_vin(self, vin: String) -> UInt64:
        assert vin in self.vin_index, "NotFound"
        return self.vin_index[vin]

    @arc4.abimethod(readonly=True)
    def get_ownership_history(self, vehicle_id: UInt64) -> arc4.DynamicArray[arc4.Address]:
        """Every account that has held the vehicle, oldest first."""
        record = self._vehicle(vehicle_id)
        history = arc4.DynamicArray[arc4.Address]()
        for index in urange(record.history_length.native):
            history.append(arc4.Address(self.owners[history_key(vehicle_id, index)]))
        return history

    @arc4.abimethod(readonly=True)
    def current_owner_of(self, vehicle_id: UInt64) -> arc4.Address:
        record = self._vehicle(vehicle_id)
        return arc4.Address(self._owner_of(vehicle_id, record))

    @arc4.abimethod(readonly=True)
    def list_vehicles_for_sale(self) -> arc4.DynamicArray[arc4.UInt64]:
        """Ids of every listed vehicle, ascending. Scans the whole registry."""
        listed = arc4.DynamicArray[arc4.UInt64]()
        for vehicle_id in urange(1, self.vehicle_count.value + 1):
            if self.vehicles[vehicle_id].for_sale.native:
                listed.append(arc4.UInt64(vehicle_id))
        return listed

    @arc4.abimethod(readonly=True, name="vehicle_count")
    def get_vehicle_count(self) -> UInt64:
        return self.vehicle_count.value

    # ── Listing & sale ───────────────────────────────────────────────────────

    @arc4.abimethod
    def list_for_sale(self, vehicle_id: UInt64, price: UInt64) -> None:
        """
        Put a vehicle on the market. Current owner only.

        Listing a vehicle that is already for sale replaces its price.
        """
        self._not_settling()
        record = self._vehicle(vehicle_id)
        assert Txn.sender == self._owner_of(vehicle_id, record), "NotOwner"
        assert price > 0, "InvalidPrice"

        record.for_sale = arc4.Bool(True)
        record.price = arc4.UInt64(price)
        self.vehicles[vehicle_id] = record.copy()

        arc4.emit(VehicleListed(arc4.UInt64(vehicle_id), arc4.Address(Txn.sender), arc4.UInt64(price)))

    @arc4.abimethod
    def cancel_listing(self, vehicle_id: UInt64) -> None:
        self._not_settling()
        record = self._vehicle(vehicle_id)
        assert Txn.sender == self._owner_of(vehicle_id, record), "NotOwner"
        assert record.for_sale.native, "NotListed"

        record.for_sale = arc4.Bool(False)
        record.price = arc4.UInt64(0)
        self.vehicles[vehicle_id] = record.copy()

        arc4.emit(VehicleCancelled(arc4.UInt64(vehicle_id), arc4.Address(Txn.sender)))

    @arc4.abimethod
    def buy_vehicle(self, vehicle_id: UInt64, payment: gtxn.PaymentTransaction) -> None:
        """
        Buy a listed vehicle.

        Parameters
        ----------
        vehicle_id : UInt64
            Id of a vehicle currently for sale.
        payment : gtxn.PaymentTransaction
            Payment from the caller to the application account, grouped
            immediately before this call. Must cover the asking price.

        Behaviour
        ---------
        - The caller is appended to the ownership history and the listing is
          cleared before any funds leave the application account.
        - Exactly ``price`` is forwarded to the seller, then any excess is
          refunded to the caller.
        - If either inner payment is rejected the whole group fails and the
          buyer keeps both the funds and the status quo.
        """
        self._not_settling()
        record = self._vehicle(vehicle_id)
        assert record.for_sale.native, "NotListed"
        seller = self._owner_of(vehicle_id, record)
        assert Txn.sender != seller, "SelfPurchase"
        assert payment.sender == Txn.sender, "InvalidPayment"
        assert payment.receiver == Global.current_application_address, "InvalidPayment"
        price = record.price.native
        assert payment.amount >= price, "InsufficientPayment"

        # ── Effects ──────────────────────────────────────────────────────────
        self.owners[history_key(vehicle_id, record.history_length.native)] = Txn.sender
        record.history_length = arc4.UInt64(record.history_length.native + 1)
        record.for_sale = arc4.Bool(False)
        record.price = arc4.UInt64(0)
        self.vehicles[vehicle_id] = record.copy()

        # ── Interactions ─────────────────────────────────────────────────────
        self.settling.value = True
        itxn.Payment(receiver=seller, amount=price, fee=0).submit()
        excess = payment.amount - price
        if excess > 0:
            itxn.Payment(receiver=Txn.sender, amount=excess, fee=0).submit()
        self.settling.value = False

        arc4.emit(
            VehicleSold(
                arc4.UInt64(vehicle_id),
                arc4.Address(seller),
                arc4.Address(Txn.sender),
                arc4.UInt64(price),
            )
        )

    # ── Internals ────────────────────────────────────────────────────────────

    @subroutine
    def _only_admin(self) -> None:
        assert Txn.sender == self.admin.value, "Unauthorized"

    @subroutine
    def _not_settling(self) -> None:
        assert not self.settling.value, "Reentrant"

    @subroutine
    def _vehicle(self, vehicle_id: UInt64) -> VehicleRecord:
        assert vehicle_id in self.vehicles, "NotFound"
        return self.vehicles[vehicle_id].copy()

    @subroutine
    def _owner_of(self, vehicle_id: UInt64, record: VehicleRecord) -> Account:
        return self.owners[history_key(vehicle_id, record.history_length.native - 1)]
