"""
Utilities Package
Network and deployer configuration
"""

from .network_config import NetworkConfig

__all__ = ['NetworkConfig']
