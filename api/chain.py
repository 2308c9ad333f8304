"""
Live reads of VehicleRegistry state straight from algod and the indexer.

Nothing is cached: every call goes to the chain, the same way the browser
would, so the API never disagrees with the ledger.
"""
import base64
import logging

import requests

from api import config
from smart_contracts.vehicle_registry import codec
from smart_contracts.vehicle_registry.errors import NotFoundError

logger = logging.getLogger(__name__)


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


class RegistryReader:
    def __init__(
        self,
        algod_url: str = config.ALGOD_URL,
        indexer_url: str = config.INDEXER_URL,
        app_id: int = config.APP_ID,
        algod_token: str = config.ALGOD_TOKEN,
        timeout: float = config.REQUEST_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.algod_url = algod_url.rstrip("/")
        self.indexer_url = indexer_url.rstrip("/")
        self.app_id = app_id
        self.timeout = timeout
        self.session = session or requests.Session()
        if algod_token:
            self.session.headers["X-Algo-API-Token"] = algod_token

    # ── Raw algod access ──────────────────────────────────────────────────────

    def algod_get(self, path: str, **params) -> dict:
        resp = self.session.get(f"{self.algod_url}{path}", params=params or None, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def read_box(self, name: bytes) -> bytes | None:
        """Value of one application box, None if the box does not exist."""
        resp = self.session.get(
            f"{self.algod_url}/v2/applications/{self.app_id}/box",
            params={"name": f"b64:{_b64(name)}"},
            timeout=self.timeout,
        )
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return base64.b64decode(resp.json().get("value", ""))

    def box_names(self) -> list[bytes]:
        box_list = self.algod_get(f"/v2/applications/{self.app_id}/boxes").get("boxes", [])
        logger.info("[CHAIN] Found %d box(es) in App %d", len(box_list), self.app_id)
        return [base64.b64decode(box_ref["name"]) for box_ref in box_list]

    def global_state(self) -> dict[str, int | bytes]:
        app = self.algod_get(f"/v2/applications/{self.app_id}")
        state: dict[str, int | bytes] = {}
        for entry in app.get("params", {}).get("global-state", []):
            key = base64.b64decode(entry["key"]).decode("utf-8", errors="replace")
            value = entry["value"]
            # type 1 = bytes, type 2 = uint
            state[key] = base64.b64decode(value.get("bytes", "")) if value["type"] == 1 else value.get("uint", 0)
        return state

    # ── Registry views ────────────────────────────────────────────────────────

    def admin(self) -> str | None:
        raw = self.global_state().get("admin")
        return codec.decode_address(raw) if raw else None

    def vehicle_count(self) -> int:
        return int(self.global_state().get("vehicle_count", 0))

    def is_constructor(self, address: str) -> bool:
        return self.read_box(codec.constructor_box_name(address)) is not None

    def owner_at(self, vehicle_id: int, index: int) -> str:
        raw = self.read_box(codec.owner_box_name(vehicle_id, index))
        if raw is None:
            raise NotFoundError(f"Vehicle #{vehicle_id} has no owner at index {index}")
        return codec.decode_address(raw)

    def get_vehicle(self, vehicle_id: int) -> codec.Vehicle:
        raw = self.read_box(codec.vehicle_box_name(vehicle_id))
        if raw is None:
            raise NotFoundError(f"Vehicle #{vehicle_id} not found")
        vehicle = codec.decode_vehicle(vehicle_id, raw)
        vehicle.owner = self.owner_at(vehicle_id, vehicle.history_length - 1)
        return vehicle

    def get_vehicle_by_vin(self, vin: str) -> codec.Vehicle:
        raw = self.read_box(codec.vin_box_name(codec.validate_vin(vin)))
        if raw is None:
            raise NotFoundError(f"No vehicle with VIN {vin}")
        return self.get_vehicle(codec.decode_uint64(raw))

    def get_ownership_history(self, vehicle_id: int) -> list[str]:
        vehicle = self.get_vehicle(vehicle_id)
        return [self.owner_at(vehicle_id, index) for index in range(vehicle.history_length)]

    def list_vehicles(self) -> list[codec.Vehicle]:
        """Every minted vehicle with its current owner, ordered by id."""
        vehicle_ids = sorted(
            vehicle_id
            for vehicle_id in map(codec.vehicle_id_from_box_name, self.box_names())
            if vehicle_id is not None
        )
        vehicles = [self.get_vehicle(vehicle_id) for vehicle_id in vehicle_ids]
        for vehicle in vehicles:
            logger.debug("[CHAIN] Loaded: #%d %s -> %s...", vehicle.vehicle_id, vehicle.vin, vehicle.owner[:8])
        return vehicles

    # ── Indexer ──────────────────────────────────────────────────────────────

    def app_transactions(self, min_round: int = 0) -> list[dict]:
        """Application call transactions for the registry, following pagination."""
        transactions: list[dict] = []
        params: dict = {"application-id": self.app_id, "min-round": min_round}
        while True:
            resp = self.session.get(f"{self.indexer_url}/v2/transactions", params=params, timeout=self.timeout)
            resp.raise_for_status()
            page = resp.json()
            transactions.extend(page.get("transactions", []))
            next_token = page.get("next-token")
            if not next_token or not page.get("transactions"):
                return transactions
            params = {**params, "next": next_token}
