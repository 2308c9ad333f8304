"""
Certify (or revoke) vehicle constructors on a deployed VehicleRegistry.

Usage:
    DEPLOYER_MNEMONIC="word1 word2 ..." APP_ID=123 \
    CONSTRUCTOR_ADDRESSES="ADDR1,ADDR2" python3 certify_constructors.py [--revoke]

Only the admin (the account that deployed the registry) can do this.
"""
import os
import sys

from algokit_utils import AlgorandClient

from smart_contracts.vehicle_registry.client import VehicleRegistryClient
from smart_contracts.vehicle_registry.deploy_config import constructor_addresses_from_env
from smart_contracts.vehicle_registry.errors import RegistryError


def main() -> None:
    raw_mnemonic = os.environ.get("DEPLOYER_MNEMONIC", "").strip()
    app_id       = int(os.environ.get("APP_ID", "0"))
    addresses    = constructor_addresses_from_env()
    revoke       = "--revoke" in sys.argv[1:]

    if not raw_mnemonic or not app_id or not addresses:
        print("ERROR: Set DEPLOYER_MNEMONIC, APP_ID and CONSTRUCTOR_ADDRESSES.")
        sys.exit(1)

    algorand = AlgorandClient.testnet()
    admin    = algorand.account.from_mnemonic(mnemonic_secret=raw_mnemonic)
    registry = VehicleRegistryClient.from_network(algorand, app_id, sender=admin.address, signer=admin.signer)
    print(f"Admin    : {admin.address}")
    print(f"Registry : App #{app_id}")

    failures = 0
    for address in addresses:
        try:
            if revoke:
                registry.remove_constructor(address)
            else:
                registry.add_constructor(address)
        except RegistryError as e:
            failures += 1
            print(f"  ❌ {address[:8]}... {e.reason}: {e.message}")
            continue
        status = "certified" if registry.is_constructor(address) else "not certified"
        print(f"  ✅ {address[:8]}... {status}")

    if failures:
        sys.exit(1)

if __name__ == "__main__":
    main()
