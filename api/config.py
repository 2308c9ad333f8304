import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the same directory as this file, regardless of cwd
load_dotenv(Path(__file__).parent / ".env")

# ── Network config ────────────────────────────────────────────────────────────
ALGOD_URL       = os.getenv("ALGOD_URL", "https://testnet-api.algonode.cloud")
ALGOD_TOKEN     = os.getenv("ALGOD_TOKEN", "")
INDEXER_URL     = os.getenv("INDEXER_URL", "https://testnet-idx.algonode.cloud")
APP_ID          = int(os.getenv("APP_ID", "0"))   # AutoChain VehicleRegistry App ID
NETWORK         = os.getenv("NETWORK", "Testnet")
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "10"))
