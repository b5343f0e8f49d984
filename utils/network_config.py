"""
Network Configuration
Resolves the target network, RPC endpoint and deployer settings
"""

import os
import json
from typing import Dict, Optional
from loguru import logger
from dotenv import load_dotenv

load_dotenv()


DEFAULT_CONFIG_PATH = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
    'config',
    'networks.json'
)

DEFAULT_TX_TIMEOUT = 120


class NetworkConfig:
    """
    Settings for a single deployment target

    Network definitions live in config/networks.json, secrets and
    overrides come from the environment (.env supported):

    DEPLOY_NETWORK       - network name (default: default_network)
    DEPLOY_RPC_URL       - overrides the network's RPC URL
    DEPLOYER_PRIVATE_KEY - local signing key (default: node's first account)
    ARTIFACTS_DIR        - Hardhat artifacts directory (default: artifacts)
    DEPLOY_TX_TIMEOUT    - receipt wait timeout in seconds (default: 120)
    """

    def __init__(
        self,
        network: str,
        rpc_url: str,
        name: Optional[str] = None,
        chain_id: Optional[int] = None,
        private_key: Optional[str] = None,
        artifacts_dir: str = 'artifacts',
        tx_timeout: int = DEFAULT_TX_TIMEOUT
    ):
        self.network = network
        self.rpc_url = rpc_url
        self.name = name or network
        self.chain_id = chain_id
        self.private_key = private_key
        self.artifacts_dir = artifacts_dir
        self.tx_timeout = tx_timeout

    @classmethod
    def load(cls, network: Optional[str] = None, config_path: str = DEFAULT_CONFIG_PATH) -> 'NetworkConfig':
        """
        Load configuration for a network

        Args:
            network: Network name (None = DEPLOY_NETWORK or default_network)
            config_path: Path to networks JSON file

        Returns:
            NetworkConfig instance
        """
        with open(config_path, 'r') as f:
            config = json.load(f)

        network = network or os.getenv('DEPLOY_NETWORK') or config['default_network']
        networks = config.get('networks', {})

        if network not in networks:
            raise ValueError(
                f"Unknown network: {network} (available: {', '.join(sorted(networks))})"
            )

        network_data = networks[network]
        rpc_url = os.getenv('DEPLOY_RPC_URL') or cls._resolve_rpc_url(network, network_data)

        config_obj = cls(
            network=network,
            rpc_url=rpc_url,
            name=network_data.get('name'),
            chain_id=network_data.get('chain_id'),
            private_key=os.getenv('DEPLOYER_PRIVATE_KEY') or None,
            artifacts_dir=os.getenv('ARTIFACTS_DIR', 'artifacts'),
            tx_timeout=cls._parse_timeout(os.getenv('DEPLOY_TX_TIMEOUT'))
        )

        logger.debug(f"Network config loaded: {config_obj.name} ({config_obj.network})")
        return config_obj

    @staticmethod
    def _resolve_rpc_url(network: str, network_data: Dict) -> str:
        """Get RPC URL from literal value or environment variable"""
        if network_data.get('http_url'):
            return network_data['http_url']

        env_name = network_data.get('http_url_env')
        if not env_name:
            raise ValueError(f"Network {network} defines neither http_url nor http_url_env")

        rpc_url = os.getenv(env_name)
        if not rpc_url:
            raise ValueError(f"{env_name} must be set to deploy to {network}")

        return rpc_url

    @staticmethod
    def _parse_timeout(value: Optional[str]) -> int:
        if value is None or value == '':
            return DEFAULT_TX_TIMEOUT

        try:
            timeout = int(value)
        except ValueError:
            raise ValueError(f"DEPLOY_TX_TIMEOUT must be an integer, got {value!r}")

        if timeout <= 0:
            raise ValueError(f"DEPLOY_TX_TIMEOUT must be positive, got {timeout}")

        return timeout

    def __repr__(self) -> str:
        # private_key excluded
        return (
            f"NetworkConfig(network={self.network!r}, rpc_url={self.rpc_url!r}, "
            f"chain_id={self.chain_id!r}, artifacts_dir={self.artifacts_dir!r})"
        )
