"""
Artifact Loader
Reads compiled contract artifacts (ABI + bytecode) from Hardhat build output
"""

import os
import json
from typing import Dict, List, Optional
from web3 import Web3
from loguru import logger


class ContractArtifact:
    """Compiled contract ready for deployment"""

    def __init__(
        self,
        contract_name: str,
        source_name: str,
        abi: List[Dict],
        bytecode: str,
        link_references: Optional[Dict] = None
    ):
        self.contract_name = contract_name
        self.source_name = source_name
        self.abi = abi
        self.bytecode = bytecode
        self.link_references = link_references or {}

    @property
    def fully_qualified_name(self) -> str:
        return f"{self.source_name}:{self.contract_name}"

    def __repr__(self) -> str:
        return f"ContractArtifact({self.fully_qualified_name})"


def find_artifact_path(contract_name: str, artifacts_dir: str = 'artifacts') -> str:
    """
    Locate the artifact file for a contract

    Args:
        contract_name: Bare name ("Kyc") or fully qualified name
            ("contracts/Kyc.sol:Kyc")
        artifacts_dir: Hardhat artifacts directory

    Returns:
        Path to the artifact JSON file
    """
    if ':' in contract_name:
        source_name, name = contract_name.rsplit(':', 1)
        path = os.path.join(artifacts_dir, source_name, f"{name}.json")

        if not os.path.exists(path):
            raise FileNotFoundError(
                f"Artifact for contract {contract_name} not found: {path}. "
                f"Run 'npx hardhat compile' first"
            )
        return path

    matches = []

    for root, dirs, files in os.walk(artifacts_dir):
        # build-info holds compiler input/output, not contract artifacts
        dirs[:] = sorted(d for d in dirs if d != 'build-info')

        if f"{contract_name}.json" in files:
            matches.append(os.path.join(root, f"{contract_name}.json"))

    if not matches:
        raise FileNotFoundError(
            f"Artifact for contract {contract_name} not found in {artifacts_dir}. "
            f"Run 'npx hardhat compile' first"
        )

    if len(matches) > 1:
        candidates = [
            f"{os.path.relpath(os.path.dirname(path), artifacts_dir).replace(os.sep, '/')}:{contract_name}"
            for path in matches
        ]
        raise ValueError(
            f"Multiple artifacts for contract {contract_name}, use a fully qualified name: "
            f"{', '.join(candidates)}"
        )

    return matches[0]


def load_artifact(
    contract_name: str,
    artifacts_dir: str = 'artifacts',
    libraries: Optional[Dict[str, str]] = None
) -> ContractArtifact:
    """
    Load a deployable artifact

    Args:
        contract_name: Bare or fully qualified contract name
        artifacts_dir: Hardhat artifacts directory
        libraries: Library name -> deployed address, for linking

    Returns:
        ContractArtifact with linked bytecode
    """
    path = find_artifact_path(contract_name, artifacts_dir)

    with open(path, 'r') as f:
        contract_json = json.load(f)

    missing = [key for key in ('abi', 'bytecode') if key not in contract_json]
    if missing:
        raise ValueError(f"Invalid artifact {path}: missing {', '.join(missing)}")

    name = contract_json.get('contractName') or os.path.splitext(os.path.basename(path))[0]
    source_name = contract_json.get(
        'sourceName',
        os.path.relpath(os.path.dirname(path), artifacts_dir).replace(os.sep, '/')
    )

    bytecode = contract_json['bytecode']
    if bytecode in ('', '0x'):
        raise ValueError(
            f"Contract {name} has no bytecode, it is abstract or an interface and cannot be deployed"
        )

    link_references = contract_json.get('linkReferences') or {}
    if link_references or libraries:
        bytecode = link_libraries(bytecode, link_references, libraries or {})

    logger.debug(f"Loaded artifact {source_name}:{name} from {path}")

    return ContractArtifact(
        contract_name=name,
        source_name=source_name,
        abi=contract_json['abi'],
        bytecode=bytecode,
        link_references=link_references
    )


def link_libraries(bytecode: str, link_references: Dict, libraries: Dict[str, str]) -> str:
    """
    Replace library placeholders with deployed library addresses

    Args:
        bytecode: Hex bytecode with unlinked placeholders
        link_references: Artifact linkReferences
            ({source: {library: [{start, length}]}})
        libraries: Library name (bare or fully qualified) -> address

    Returns:
        Linked hex bytecode
    """
    needed = {
        f"{source}:{library}": offsets
        for source, source_libraries in link_references.items()
        for library, offsets in source_libraries.items()
    }

    resolved = {}

    for given_name, address in libraries.items():
        if ':' in given_name:
            targets = [given_name] if given_name in needed else []
        else:
            targets = [fqn for fqn in needed if fqn.rsplit(':', 1)[1] == given_name]

        if not targets:
            raise ValueError(f"Contract does not link against library {given_name}")

        if len(targets) > 1:
            raise ValueError(
                f"Ambiguous library name {given_name}, use one of: {', '.join(sorted(targets))}"
            )

        if not Web3.is_address(address):
            raise ValueError(f"Invalid address {address} for library {given_name}")

        if targets[0] in resolved:
            raise ValueError(f"Library {targets[0]} given more than once")

        resolved[targets[0]] = address

    missing = sorted(set(needed) - set(resolved))
    if missing:
        raise ValueError(f"Missing addresses for libraries: {', '.join(missing)}")

    prefix = '0x' if bytecode.startswith('0x') else ''
    code = bytecode[len(prefix):]

    for fqn, offsets in needed.items():
        address_hex = Web3.to_checksum_address(resolved[fqn])[2:].lower()

        for offset in offsets:
            start = offset['start'] * 2
            length = offset['length'] * 2
            code = code[:start] + address_hex[:length] + code[start + length:]

    return prefix + code
