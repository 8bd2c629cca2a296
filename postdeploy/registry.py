"""
Address registry

Merges explicit overrides, positionally resolved proxies and name matches
from the raw record into the address table used to build transactions.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Sequence

from web3 import Web3

from .deployment_record import DEFAULT_CONTRACT_ORDER, DeploymentRecord, address_by_name
from .environments import ZERO_ADDRESS, Environment, get_network_config, is_zero_address
from .errors import AddressUnresolved, ConfigInvalid

logger = logging.getLogger(__name__)

SOURCE_OVERRIDE = "override"
SOURCE_BROADCAST = "broadcast"
SOURCE_RECORD_NAME = "record-name"
SOURCE_UNRESOLVED = "unresolved"


@dataclass
class AddressTable:
    """Logical contract name -> checksummed address, or the zero-address sentinel"""
    environment: Environment
    addresses: Dict[str, str] = field(default_factory=dict)
    sources: Dict[str, str] = field(default_factory=dict)

    def get(self, name: str) -> str:
        return self.addresses.get(name, ZERO_ADDRESS)

    def require(self, name: str) -> str:
        """Address to transact against; the sentinel is never returned"""
        address = self.get(name)
        if is_zero_address(address):
            raise AddressUnresolved(name)
        return address

    def unresolved(self) -> List[str]:
        return [name for name, address in self.addresses.items() if is_zero_address(address)]

    def as_dict(self) -> Dict[str, str]:
        return dict(self.addresses)


def _checksum(name: str, address: str) -> str:
    try:
        return Web3.to_checksum_address(address)
    except (ValueError, TypeError):
        raise ConfigInvalid([f"Address for {name} is not a valid address: {address!r}"]) from None


def build(
    environment: Environment,
    partial_map: Mapping[str, str],
    overrides: Optional[Mapping[str, str]] = None,
    record: Optional[DeploymentRecord] = None,
    order: Sequence[str] = DEFAULT_CONTRACT_ORDER,
) -> AddressTable:
    """
    Build the final address table for a run

    Precedence per name: non-zero override, positionally resolved proxy,
    the contract created in the record under exactly that name (its proxy
    when one points at it), and finally the zero-address sentinel.

    Args:
        environment: Environment the table belongs to
        partial_map: Output of deployment_record.resolve
        overrides: Explicit addresses for this environment
        record: Raw deployment record used for the name fallback
        order: Names that must appear in the table
    """
    overrides = overrides or {}
    names = list(order)
    names.extend(name for name in list(overrides) + list(partial_map) if name not in names)

    table = AddressTable(environment=environment)
    for name in names:
        address, source = ZERO_ADDRESS, SOURCE_UNRESOLVED
        named = address_by_name(record, name) if record is not None else None

        if not is_zero_address(overrides.get(name)):
            address, source = overrides[name], SOURCE_OVERRIDE
        elif not is_zero_address(partial_map.get(name)):
            address, source = partial_map[name], SOURCE_BROADCAST
        elif named is not None:
            address, source = named, SOURCE_RECORD_NAME

        if source != SOURCE_UNRESOLVED:
            address = _checksum(name, address)
        else:
            logger.warning(f"No address found for {name} on {environment}")

        table.addresses[name] = address
        table.sources[name] = source

    return table


def deployment_document(table: AddressTable, timestamp: str) -> Dict:
    return {
        'network': table.environment.value,
        'chainId': get_network_config(table.environment).chain_id,
        'timestamp': timestamp,
        'contracts': {name.lower(): address for name, address in table.addresses.items()},
    }


def write_deployment(table: AddressTable, deployments_dir: str, timestamp: Optional[str] = None) -> str:
    """
    Persist the table to <deployments_dir>/<network>/latest.json and refresh index.json

    Returns:
        Path of the written latest.json
    """
    timestamp = timestamp or datetime.now(timezone.utc).isoformat()
    document = deployment_document(table, timestamp)

    network_dir = os.path.join(deployments_dir, table.environment.value)
    os.makedirs(network_dir, exist_ok=True)
    latest_path = os.path.join(network_dir, 'latest.json')
    with open(latest_path, 'w') as f:
        json.dump(document, f, indent=2)

    index_path = os.path.join(deployments_dir, 'index.json')
    index = {}
    if os.path.exists(index_path):
        try:
            with open(index_path, 'r') as f:
                index = json.load(f)
        except json.JSONDecodeError:
            logger.warning(f"Ignoring unreadable deployments index {index_path}")
            index = {}
    index[table.environment.value] = document
    index['timestamp'] = timestamp
    with open(index_path, 'w') as f:
        json.dump(index, f, indent=2)

    logger.info(f"Deployment addresses written to {latest_path}")
    return latest_path


def read_deployment(deployments_dir: str, environment: Environment, order: Sequence[str] = DEFAULT_CONTRACT_ORDER) -> Dict[str, str]:
    """
    Non-zero addresses from an existing <network>/latest.json, keyed by logical name

    Keys in the file are lowercase; they are mapped back to the names in order.
    Addresses from a fresh broadcast take precedence over these.
    """
    path = os.path.join(deployments_dir, environment.value, 'latest.json')
    if not os.path.exists(path):
        return {}
    try:
        with open(path, 'r') as f:
            contracts = json.load(f).get('contracts', {})
    except (json.JSONDecodeError, AttributeError) as e:
        logger.warning(f"Could not load {environment} deployments file {path}: {e}")
        return {}
    if not isinstance(contracts, dict):
        logger.warning(f"Ignoring {environment} deployments file {path}: contracts is not an object")
        return {}

    by_lower = {name.lower(): name for name in order}
    addresses = {}
    for key, address in contracts.items():
        if isinstance(address, str) and not is_zero_address(address):
            addresses[by_lower.get(key.lower(), key)] = address
    logger.info(f"Loaded {len(addresses)} {environment} addresses from {path}")
    return addresses
