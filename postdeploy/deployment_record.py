"""
Deployment record loading and address resolution

A deployment record is the list of transactions Foundry writes to
broadcast/<script>/<chain id>/run-latest.json. Every logical contract is
deployed behind an ERC1967 proxy, and proxies are created in a fixed order
by the deploy script, so the n-th proxy creation belongs to the n-th name of
the contract order.
"""

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .errors import DeploymentRecordUnavailable

logger = logging.getLogger(__name__)

CREATE = "CREATE"
PROXY_CONTRACT_NAMES = frozenset({"ERC1967Proxy"})

DEFAULT_CONTRACT_ORDER: Tuple[str, ...] = (
    "Roles",
    "Brands",
    "Wrappers",
    "Whitelist",
    "Payments",
    "Sales",
    "Memberships",
)


@dataclass(frozen=True)
class CreationEvent:
    kind: str
    logical_name: Optional[str]
    address: Optional[str]
    arguments: Tuple[Any, ...] = ()

    @property
    def is_creation(self) -> bool:
        return self.kind == CREATE and bool(self.address)

    @property
    def is_proxy_creation(self) -> bool:
        return self.is_creation and self.logical_name in PROXY_CONTRACT_NAMES


@dataclass(frozen=True)
class DeploymentRecord:
    events: Tuple[CreationEvent, ...] = ()
    source: Optional[str] = None
    chain_id: Optional[int] = None

    def proxy_creations(self) -> List[CreationEvent]:
        return [event for event in self.events if event.is_proxy_creation]

    def find_created(self, name: str) -> Optional[CreationEvent]:
        """First creation event carrying exactly this contract name"""
        for event in self.events:
            if event.is_creation and event.logical_name == name:
                return event
        return None


def resolve(record: DeploymentRecord, order: Sequence[str] = DEFAULT_CONTRACT_ORDER) -> Dict[str, str]:
    """
    Map logical contract names to proxy addresses by creation position

    Args:
        record: Parsed deployment record
        order: Logical names in the order the deploy script creates their proxies

    Returns:
        Partial mapping with min(proxies, names) entries. Names beyond the
        number of proxy creations are absent, surplus proxies are ignored.
    """
    proxies = record.proxy_creations()
    return {name: event.address for name, event in zip(order, proxies)}


def proxy_implementations(record: DeploymentRecord) -> Dict[str, str]:
    """Lowercase proxy address -> lowercase implementation address"""
    mapping = {}
    for event in record.proxy_creations():
        if event.arguments and isinstance(event.arguments[0], str):
            mapping[event.address.lower()] = event.arguments[0].lower()
    return mapping


def address_by_name(record: DeploymentRecord, name: str) -> Optional[str]:
    """
    Address of the contract created under this name

    When a proxy was constructed with that implementation, the proxy address
    is returned instead.
    """
    created = record.find_created(name)
    if created is None:
        return None
    for proxy, implementation in proxy_implementations(record).items():
        if implementation == created.address.lower():
            return proxy
    return created.address


def confirm_by_implementation(record: DeploymentRecord, resolved: Dict[str, str]) -> List[str]:
    """
    Cross-check the positional mapping against constructor arguments

    A proxy is constructed with its implementation address, and implementations
    are created under their real contract name. Names whose positional proxy
    points at a different implementation than the one created under that name
    are returned. Names that cannot be checked are skipped.
    """
    implementations = proxy_implementations(record)
    mismatched = []
    for name, proxy in resolved.items():
        created = record.find_created(name)
        pointed_at = implementations.get(proxy.lower())
        if created is None or pointed_at is None:
            continue
        if created.address.lower() != pointed_at:
            mismatched.append(name)
    return mismatched


def _run_files(directory: str) -> List[str]:
    if not os.path.isdir(directory):
        return []
    files = [f for f in os.listdir(directory) if f.startswith("run-") and f.endswith(".json")]
    return sorted(files, reverse=True)


def latest_broadcast_path(broadcast_dir: str, chain_id: int) -> str:
    """
    Locate the newest broadcast file for a chain

    Real broadcasts in <dir>/<chain id>/ win over simulations in its dry-run/
    subdirectory. Names sort so that run-latest.json comes first.
    """
    network_dir = os.path.join(broadcast_dir, str(chain_id))
    for directory in (network_dir, os.path.join(network_dir, "dry-run")):
        files = _run_files(directory)
        if files:
            return os.path.join(directory, files[0])
    raise DeploymentRecordUnavailable(network_dir, "no run-*.json broadcast files")


def parse_record(data: Dict[str, Any], source: Optional[str] = None) -> DeploymentRecord:
    try:
        transactions = data['transactions']
        events = tuple(
            CreationEvent(
                kind=tx.get('transactionType') or "",
                logical_name=tx.get('contractName'),
                address=tx.get('contractAddress'),
                arguments=tuple(tx.get('arguments') or ()),
            )
            for tx in transactions
        )
    except (KeyError, TypeError, AttributeError) as e:
        raise DeploymentRecordUnavailable(source, f"malformed broadcast data: {e}") from e
    return DeploymentRecord(events=events, source=source, chain_id=data.get('chain'))


def load_record(path: str) -> DeploymentRecord:
    """Read and parse a broadcast file"""
    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise DeploymentRecordUnavailable(path) from e
    except (OSError, json.JSONDecodeError) as e:
        raise DeploymentRecordUnavailable(path, str(e)) from e

    if not isinstance(data, dict):
        raise DeploymentRecordUnavailable(path, "broadcast data is not an object")

    record = parse_record(data, source=path)
    logger.info(f"Loaded {len(record.events)} transactions from {path} "
                f"({len(record.proxy_creations())} proxy creations)")
    return record
