"""
One-shot deployment of VehicleRegistry to Algorand Testnet.
Usage:
    DEPLOYER_MNEMONIC="word1 word2 ..." python3 deploy_testnet.py

The deployer becomes the registry admin and the app account is funded for box
storage. Afterwards, certify constructors with certify_constructors.py.
"""
import base64
import json
import os
import sys
from pathlib import Path

from algosdk import abi, account, mnemonic
from algosdk.v2client import algod
from algosdk.transaction import ApplicationCreateTxn, OnComplete, PaymentTxn, StateSchema, wait_for_confirmation
from algosdk.logic import get_application_address

ALGOD_URL   = os.environ.get("ALGOD_URL", "https://testnet-api.algonode.cloud")
ALGOD_TOKEN = os.environ.get("ALGOD_TOKEN", "")
ARC56_PATH  = Path(__file__).parent / "smart_contracts/artifacts/vehicle_registry/VehicleRegistry.arc56.json"

# admin (bytes), vehicle_count + settling (uints). Everything else lives in boxes.
GLOBAL_SCHEMA = StateSchema(num_uints=2, num_byte_slices=1)
LOCAL_SCHEMA  = StateSchema(num_uints=0, num_byte_slices=0)
CREATE_METHOD = abi.Method.from_signature("create()void")


def compile_programs(client: algod.AlgodClient) -> tuple[bytes, bytes]:
    arc56 = json.loads(ARC56_PATH.read_text())

    def compile_teal(src_b64: str) -> bytes:
        src = base64.b64decode(src_b64).decode()
        result = client.compile(src)
        return base64.b64decode(result["result"])

    return compile_teal(arc56["source"]["approval"]), compile_teal(arc56["source"]["clear"])


def main() -> None:
    raw_mnemonic = os.environ.get("DEPLOYER_MNEMONIC", "").strip()
    if not raw_mnemonic:
        print("ERROR: Set DEPLOYER_MNEMONIC env var to your 25-word mnemonic.")
        sys.exit(1)

    private_key = mnemonic.to_private_key(raw_mnemonic)
    sender      = account.address_from_private_key(private_key)
    print(f"Deployer (admin): {sender}")

    client = algod.AlgodClient(ALGOD_TOKEN, ALGOD_URL)
    approval_bytes, clear_bytes = compile_programs(client)

    txn = ApplicationCreateTxn(
        sender=sender,
        sp=client.suggested_params(),
        on_complete=OnComplete.NoOpOC,
        approval_program=approval_bytes,
        clear_program=clear_bytes,
        global_schema=GLOBAL_SCHEMA,
        local_schema=LOCAL_SCHEMA,
        app_args=[CREATE_METHOD.get_selector()],
    )

    tx_id = client.send_transaction(txn.sign(private_key))
    print(f"Transaction submitted: {tx_id}")
    print("Waiting for confirmation…")

    result = wait_for_confirmation(client, tx_id, wait_rounds=8)
    app_id = result["application-index"]
    app_address = get_application_address(app_id)

    # Box MBR reserve: every vehicle, owner and VIN box is paid for by the app account.
    funding = int(os.environ.get("APP_FUNDING_ALGO", "5")) * 1_000_000
    fund_txn = PaymentTxn(sender, client.suggested_params(), app_address, funding)
    fund_id = client.send_transaction(fund_txn.sign(private_key))
    wait_for_confirmation(client, fund_id, wait_rounds=8)

    print()
    print("=" * 55)
    print(f"  ✅  VehicleRegistry deployed to Algorand Testnet!")
    print(f"      App ID     : {app_id}")
    print(f"      App account: {app_address} (funded {funding} µALGO)")
    print(f"      TxID       : {tx_id}")
    print(f"      Explorer   : https://testnet.explorer.perawallet.app/application/{app_id}/")
    print("=" * 55)
    print()
    print(f"Next: set APP_ID={app_id} in api/.env and run certify_constructors.py")

if __name__ == "__main__":
    main()
