"""
Contract Factory
Resolves deployable contracts by name and deploys them
"""

from typing import Dict, Optional, Tuple
from web3 import AsyncWeb3, AsyncHTTPProvider, Web3
from eth_account import Account
from loguru import logger

from blockchain.artifacts import ContractArtifact, load_artifact
from utils.network_config import NetworkConfig


GAS_BUFFER = 1.2  # 20% over estimate


class DeployedContract:
    """
    Handle for a deployed contract instance

    Wraps the web3 contract bound to the deployed address together
    with the deployment receipt details.
    """

    def __init__(
        self,
        name: str,
        address: str,
        transaction_hash: str,
        deployer: str,
        contract,
        block_number: Optional[int] = None,
        gas_used: Optional[int] = None
    ):
        self.name = name
        self.address = address
        self.transaction_hash = transaction_hash
        self.deployer = deployer
        self.contract = contract
        self.block_number = block_number
        self.gas_used = gas_used

    @property
    def functions(self):
        return self.contract.functions

    def __repr__(self) -> str:
        return (
            f"DeployedContract(name={self.name!r}, address={self.address!r}, "
            f"transaction_hash={self.transaction_hash!r}, deployer={self.deployer!r}, "
            f"block_number={self.block_number!r}, gas_used={self.gas_used!r})"
        )


class ContractFactory:
    """
    Deploys a compiled contract from a fixed deployer account

    Two signing modes:
    - Local key: transaction is built, signed with eth_account and
      sent raw
    - Unlocked node account (Hardhat/Anvil): node signs via
      eth_sendTransaction
    """

    def __init__(
        self,
        w3: AsyncWeb3,
        artifact: ContractArtifact,
        deployer: str,
        account=None,
        tx_timeout: int = 120
    ):
        """
        Initialize Contract Factory

        Args:
            w3: AsyncWeb3 instance
            artifact: Compiled contract artifact
            deployer: Deployer address
            account: LocalAccount for signing (None = node-managed account)
            tx_timeout: Seconds to wait for the deployment receipt
        """
        self.w3 = w3
        self.artifact = artifact
        self.deployer = deployer
        self.account = account
        self.tx_timeout = tx_timeout

        self.contract = w3.eth.contract(abi=artifact.abi, bytecode=artifact.bytecode)

    @property
    def contract_name(self) -> str:
        return self.artifact.contract_name

    async def deploy(self, *args, **tx_overrides) -> DeployedContract:
        """
        Deploy the contract

        Sends exactly one deployment transaction and waits for its receipt.

        Args:
            *args: Constructor arguments
            **tx_overrides: Transaction fields (gas, value, nonce, fees...)

        Returns:
            DeployedContract handle
        """
        constructor = self.contract.constructor(*args)
        tx_params = dict(tx_overrides)
        tx_params['from'] = self.deployer

        logger.debug(f"Deploying {self.contract_name} from {self.deployer}")

        if self.account is None:
            tx_hash = await constructor.transact(tx_params)
        else:
            tx_hash = await self._send_signed(constructor, tx_params)

        tx_hash_hex = Web3.to_hex(tx_hash)
        logger.debug(f"Deployment transaction sent: {tx_hash_hex}")

        receipt = await self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.tx_timeout)

        if receipt['status'] != 1:
            raise RuntimeError(
                f"Deployment of {self.contract_name} reverted (transaction {tx_hash_hex})"
            )

        address = receipt['contractAddress']
        instance = self.w3.eth.contract(address=address, abi=self.artifact.abi)

        logger.debug(f"{self.contract_name} deployed at {address} (gas used: {receipt.get('gasUsed')})")

        return DeployedContract(
            name=self.contract_name,
            address=address,
            transaction_hash=tx_hash_hex,
            deployer=self.deployer,
            contract=instance,
            block_number=receipt.get('blockNumber'),
            gas_used=receipt.get('gasUsed')
        )

    async def _send_signed(self, constructor, tx_params: Dict):
        """Build, sign and send deployment transaction with local key"""
        if 'nonce' not in tx_params:
            tx_params['nonce'] = await self.w3.eth.get_transaction_count(self.deployer)

        if 'chainId' not in tx_params:
            tx_params['chainId'] = await self.w3.eth.chain_id

        if 'gas' not in tx_params:
            estimate_params = {'from': self.deployer}
            if 'value' in tx_params:
                estimate_params['value'] = tx_params['value']

            gas_estimate = await constructor.estimate_gas(estimate_params)
            tx_params['gas'] = int(gas_estimate * GAS_BUFFER)

        logger.debug(f"Gas limit: {tx_params['gas']}")

        transaction = await constructor.build_transaction(tx_params)
        signed_tx = self.account.sign_transaction(transaction)

        return await self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)


async def get_contract_factory(
    contract_name: str,
    config: Optional[NetworkConfig] = None,
    w3: Optional[AsyncWeb3] = None,
    libraries: Optional[Dict[str, str]] = None
) -> ContractFactory:
    """
    Resolve a deployable factory for a contract

    Args:
        contract_name: Bare or fully qualified contract name
        config: Network configuration (None = load from environment)
        w3: AsyncWeb3 instance (None = connect to config.rpc_url)
        libraries: Library name -> address for linking

    Returns:
        ContractFactory bound to the deployer account
    """
    if config is None:
        config = NetworkConfig.load()

    if w3 is None:
        w3 = AsyncWeb3(AsyncHTTPProvider(config.rpc_url))

    if not await w3.is_connected():
        raise ConnectionError(f"Failed to connect to {config.name} at {config.rpc_url}")

    if config.chain_id is not None:
        node_chain_id = await w3.eth.chain_id
        if node_chain_id != config.chain_id:
            raise ValueError(
                f"Chain id mismatch for {config.name}: expected {config.chain_id}, node reports {node_chain_id}"
            )

    artifact = load_artifact(contract_name, config.artifacts_dir, libraries)
    account, deployer = await _resolve_deployer(w3, config)

    return ContractFactory(
        w3=w3,
        artifact=artifact,
        deployer=deployer,
        account=account,
        tx_timeout=config.tx_timeout
    )


async def _resolve_deployer(w3: AsyncWeb3, config: NetworkConfig) -> Tuple[Optional[object], str]:
    """Pick local signing account, else node's first unlocked account"""
    if config.private_key:
        account = Account.from_key(config.private_key)
        return account, account.address

    accounts = await w3.eth.accounts

    if not accounts:
        raise ValueError(
            f"No deployer account on {config.name}: set DEPLOYER_PRIVATE_KEY "
            f"or use a node with unlocked accounts"
        )

    return None, accounts[0]
