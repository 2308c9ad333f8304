import logging

from algokit_utils import AlgorandClient

from smart_contracts.vehicle_registry.deploy_config import deploy


def main():
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    print("Connecting to LocalNet...")
    algorand = AlgorandClient.default_localnet()
    deployer = algorand.account.localnet_dispenser()

    print("Deploying AutoChain Vehicle Registry...")
    registry = deploy(algorand, deployer)

    print("\n" + "="*40)
    print("🚀 AUTOCHAIN REGISTRY SUCCESSFULLY DEPLOYED!")
    print(f"🔥 APP ID: {registry.app_id}")
    print("="*40 + "\n")

if __name__ == "__main__":
    main()
