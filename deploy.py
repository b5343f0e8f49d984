"""
Contract Deployment
Deploys the Kyc contract and prints the deployed contract handle
"""

import asyncio
import os
import sys
from loguru import logger
from blockchain.contract_factory import get_contract_factory


CONTRACT_NAME = "Kyc"


def configure_logging():
    """Configure loguru sinks (stderr + optional log file)"""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=os.getenv('LOG_LEVEL', 'INFO').upper()
    )

    log_file = os.getenv('DEPLOY_LOG_FILE')
    if log_file:
        logger.add(
            log_file,
            rotation="1 day",
            retention="7 days",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}",
            level="DEBUG"
        )


async def main(contract_name: str = CONTRACT_NAME):
    """Resolve factory, deploy, report"""
    factory = await get_contract_factory(contract_name)
    contract = await factory.deploy()

    print("Contract object:", contract)
    return contract


def run() -> int:
    """
    Run deployment

    Returns:
        Process exit code (0 = deployed, 1 = failed)
    """
    configure_logging()

    try:
        contract = asyncio.run(main())
    except Exception as e:
        logger.opt(exception=e).error(f"{type(e).__name__}: {e}")
        return 1

    logger.success(f"{contract.name} deployed at {contract.address}")
    return 0


if __name__ == "__main__":
    sys.exit(run())
