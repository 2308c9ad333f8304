import logging
import os

import algokit_utils

from smart_contracts.vehicle_registry.client import ARC56_PATH, VehicleRegistryClient

logger = logging.getLogger(__name__)

# Box minimum balance reserve for the application account, in Algo.
DEFAULT_APP_FUNDING_ALGO = 5


def constructor_addresses_from_env() -> list[str]:
    raw = os.environ.get("CONSTRUCTOR_ADDRESSES", "")
    return [address.strip() for address in raw.split(",") if address.strip()]


def deploy(
    algorand: algokit_utils.AlgorandClient,
    deployer: algokit_utils.SigningAccount,
    constructors: list[str] | None = None,
) -> VehicleRegistryClient:
    """Deploy (or reuse) the registry, fund its account and certify constructors."""
    factory = algorand.client.get_app_factory(
        app_spec=ARC56_PATH.read_text(),
        default_sender=deployer.address,
        default_signer=deployer.signer,
    )

    app_client, result = factory.deploy(
        on_schema_break=algokit_utils.OnSchemaBreak.AppendApp,
        on_update=algokit_utils.OnUpdate.AppendApp,
        create_params=algokit_utils.AppClientMethodCallCreateParams(method="create"),
    )

    if result.operation_performed in (
        algokit_utils.OperationPerformed.Create,
        algokit_utils.OperationPerformed.Replace,
    ):
        funding = int(os.environ.get("APP_FUNDING_ALGO", DEFAULT_APP_FUNDING_ALGO))
        algorand.send.payment(
            algokit_utils.PaymentParams(
                sender=deployer.address,
                receiver=app_client.app_address,
                amount=algokit_utils.AlgoAmount.from_algo(funding),
            )
        )
        logger.info(f"[DEPLOY] Funded app account with {funding} ALGO")

    registry = VehicleRegistryClient(app_client, sender=deployer.address)
    for address in constructors if constructors is not None else constructor_addresses_from_env():
        registry.add_constructor(address)
        logger.info(f"[DEPLOY] Certified constructor {address}")

    logger.info(f"🚀 AutoChain VehicleRegistry deployed! App ID: {app_client.app_id}")
    return registry
