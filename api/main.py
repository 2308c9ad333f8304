import logging
from dataclasses import asdict
from functools import lru_cache

import requests
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import config
from api.chain import RegistryReader
from api.events import EventFeed
from smart_contracts.vehicle_registry.errors import NotFoundError, RegistryError

logger = logging.getLogger(__name__)

app = FastAPI(title="AutoChain Registry API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache
def get_reader() -> RegistryReader:
    return RegistryReader()


@app.exception_handler(RegistryError)
async def registry_error_handler(request: Request, exc: RegistryError):
    status_code = 404 if isinstance(exc, NotFoundError) else 400
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.reason, "message": exc.message, "detail": exc.detail},
    )


@app.exception_handler(requests.RequestException)
async def chain_error_handler(request: Request, exc: requests.RequestException):
    logger.error(f"[CHAIN] Request to node failed: {exc}")
    return JSONResponse(status_code=502, content={"error": "ChainUnavailable", "message": str(exc)})


@app.get("/")
async def root():
    return {
        "status": "ok",
        "message": "AutoChain Registry API is running",
        "app_id": config.APP_ID,
        "network": config.NETWORK,
        "endpoints": ["/vehicles", "/vehicles/{id}", "/vehicles/{id}/history", "/vehicles/vin/{vin}",
                      "/constructors/{address}", "/stats", "/events"],
    }


@app.get("/vehicles")
def list_vehicles(owner: str | None = None, for_sale: bool | None = None,
                  reader: RegistryReader = Depends(get_reader)):
    """
    Every vehicle in the registry, read live from the app's boxes.
    ``owner`` keeps the vehicles currently held by one account (the "my garage"
    view); ``for_sale`` keeps only listed (true) or unlisted (false) vehicles.
    """
    vehicles = reader.list_vehicles()
    if owner is not None:
        vehicles = [v for v in vehicles if v.owner == owner]
    if for_sale is not None:
        vehicles = [v for v in vehicles if v.for_sale == for_sale]
    return {
        "count": len(vehicles),
        "app_id": reader.app_id,
        "vehicles": [asdict(v) for v in vehicles],
    }


@app.get("/vehicles/vin/{vin}")
def get_vehicle_by_vin(vin: str, reader: RegistryReader = Depends(get_reader)):
    return asdict(reader.get_vehicle_by_vin(vin))


@app.get("/vehicles/{vehicle_id}")
def get_vehicle(vehicle_id: int, reader: RegistryReader = Depends(get_reader)):
    return asdict(reader.get_vehicle(vehicle_id))


@app.get("/vehicles/{vehicle_id}/history")
def get_history(vehicle_id: int, reader: RegistryReader = Depends(get_reader)):
    history = reader.get_ownership_history(vehicle_id)
    return {
        "vehicle_id": vehicle_id,
        "owners": history,
        "current_owner": history[-1],
        "transfers": len(history) - 1,
    }


@app.get("/constructors/{address}")
def get_constructor(address: str, reader: RegistryReader = Depends(get_reader)):
    return {"address": address, "certified": reader.is_constructor(address)}


@app.get("/stats")
def get_stats(reader: RegistryReader = Depends(get_reader)):
    vehicles = reader.list_vehicles()
    return {
        "admin": reader.admin(),
        "total_vehicles": reader.vehicle_count(),
        "vehicles_for_sale": sum(1 for v in vehicles if v.for_sale),
        "total_transfers": sum(v.history_length - 1 for v in vehicles),
    }


@app.get("/events")
def get_events(min_round: int = 0, reader: RegistryReader = Depends(get_reader)):
    """
    Decoded registry events from ``min_round`` on, oldest first, one per
    (txid, log index). ``next_round`` is the round after the last event
    returned; passing it back as ``min_round`` continues without repeats.
    """
    feed = EventFeed(reader, min_round=min_round)
    events = feed.poll()
    return {
        "count": len(events),
        "next_round": feed.min_round,
        "events": [asdict(e) for e in events],
    }


@app.get("/algod/params")
def algod_params(reader: RegistryReader = Depends(get_reader)):
    """Proxy: suggested transaction params for the wallet to build its transactions."""
    return reader.algod_get("/v2/transactions/params")


@app.get("/algod/account/{address}")
def algod_account(address: str, reader: RegistryReader = Depends(get_reader)):
    """Proxy: account info (balance check before a purchase)."""
    return reader.algod_get(f"/v2/accounts/{address}")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
