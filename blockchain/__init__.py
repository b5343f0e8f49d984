"""
Blockchain Interaction Package
Handles artifact loading, contract factories and deployment
"""

from .artifacts import ContractArtifact, load_artifact, link_libraries
from .contract_factory import ContractFactory, DeployedContract, get_contract_factory

__all__ = [
    'ContractArtifact',
    'load_artifact',
    'link_libraries',
    'ContractFactory',
    'DeployedContract',
    'get_contract_factory'
]
