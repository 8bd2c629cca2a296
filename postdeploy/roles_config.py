"""
Roles configuration

Role assignments across networks, the on-chain role identifiers and the
grants derived from them.
"""

import re
from dataclasses import dataclass, fields
from typing import Dict, List, Optional, Tuple

from .environments import Environment, is_zero_address
from .validation import VALID, ValidationResult, invalid

ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")

REQUIRED_ROLES = (
    "owner",
    "operational1",
    "operational2",
    "treasury",
    "fiat",
    "pauser",
    "upgrader",
)

OPTIONAL_ROLES = (
    ("emergency_admin", "Emergency Admin"),
    ("governance", "Governance"),
    ("partner1", "Partner 1"),
    ("partner2", "Partner 2"),
    ("lister", "Lister"),
    ("buyer", "Buyer"),
    ("renewer", "Renewer"),
    ("withdrawer", "Withdrawer"),
)


@dataclass(frozen=True)
class RoleConfig:
    # Core administrative roles
    owner: str
    operational1: str
    operational2: str

    # Financial roles
    treasury: str
    fiat: str

    # Security roles
    pauser: str
    upgrader: str

    emergency_admin: Optional[str] = None
    governance: Optional[str] = None
    partner1: Optional[str] = None
    partner2: Optional[str] = None
    lister: Optional[str] = None
    buyer: Optional[str] = None
    renewer: Optional[str] = None
    withdrawer: Optional[str] = None

    def assigned(self) -> Dict[str, str]:
        """Role name -> address for every role that is set"""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name)}


@dataclass(frozen=True)
class RoleIds:
    """keccak256 identifiers of the roles defined by the Roles contract"""
    operational: str
    fiat: str
    owner: str
    pauser: str
    upgrader: str
    treasury: str


DEFAULT_ROLE_IDS = RoleIds(
    operational="0xb0564e6f165ee6c5d845565cff3a6e9321dd47d8cc479ebdc0ef1f562f79b57b",
    fiat="0xd6d95ec8ff0096cc12d80d844c22f649871840100e7e4322db215d7a870846c6",
    owner="0x6270edb7c868f86fda4adedba75108201087268ea345934db8bad688e1feb91b",
    pauser="0x539440820030c4994db4e31b6b800deafd503688728f932addfe7a410515c14c",
    upgrader="0xa615a8afb6fffcb8c6809ac0997b5c9c12b8cc97651150f14c8f6203168cff4c",
    treasury="0x06aa03964db1f7257357ef09714a5f0ca3633723df419e97015e0c7a3e83edb7",
)


@dataclass(frozen=True)
class RoleGrant:
    """One role granted to a non-empty, duplicate-free set of accounts"""
    role_id: str
    accounts: Tuple[str, ...]
    label: str = ""

    def __post_init__(self):
        if not self.accounts:
            raise ValueError(f"Role grant {self.label or self.role_id} has no accounts")
        seen = set()
        unique = []
        for account in self.accounts:
            if account.lower() not in seen:
                seen.add(account.lower())
                unique.append(account)
        object.__setattr__(self, 'accounts', tuple(unique))


LOCAL_OWNER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

LOCAL_ROLES_CONFIG = RoleConfig(
    owner=LOCAL_OWNER,
    operational1="0x5Ad66a6D9D45a5229240D4d88d225969e10c92eC",
    operational2="0xe812BeeF1F7A62ed142835Ec2622B71AeA858085",
    treasury=LOCAL_OWNER,
    fiat=LOCAL_OWNER,
    pauser=LOCAL_OWNER,
    upgrader=LOCAL_OWNER,
)

TESTNET_OWNER = "0x45a0744065e5455CaAC18aACB99bBB64154F8cfb"
TESTNET_HOT_WALLET_1 = "0x5Ad66a6D9D45a5229240D4d88d225969e10c92eC"
TESTNET_HOT_WALLET_2 = "0xe812BeeF1F7A62ed142835Ec2622B71AeA858085"

TESTNET_ROLES_CONFIG = RoleConfig(
    owner=TESTNET_OWNER,
    operational1=TESTNET_HOT_WALLET_1,
    operational2=TESTNET_HOT_WALLET_2,
    treasury=TESTNET_OWNER,
    fiat=TESTNET_HOT_WALLET_1,
    pauser=TESTNET_OWNER,
    upgrader=TESTNET_OWNER,
)

MAINNET_MULTISIG = "0xE8c2E3Fb20810b5b65361A54e51b8B3F30e545E9"
MAINNET_HOT_WALLET_1 = "0xd67E626Cc087477c80Aa48A68a304091537E9A56"
MAINNET_HOT_WALLET_2 = "0x4E19938Cc3a6cF0d4F0f1394813bb4a9aBa4b912"

MAINNET_ROLES_CONFIG = RoleConfig(
    owner=MAINNET_MULTISIG,
    operational1=MAINNET_HOT_WALLET_1,
    operational2=MAINNET_HOT_WALLET_2,
    treasury=MAINNET_MULTISIG,
    fiat=MAINNET_HOT_WALLET_2,
    pauser=MAINNET_MULTISIG,
    upgrader=MAINNET_MULTISIG,
)

_ROLES_CONFIGS: Dict[Environment, RoleConfig] = {
    Environment.LOCAL: LOCAL_ROLES_CONFIG,
    Environment.TESTNET: TESTNET_ROLES_CONFIG,
    Environment.MAINNET: MAINNET_ROLES_CONFIG,
}


def get_roles_config(environment: Environment) -> RoleConfig:
    return _ROLES_CONFIGS[environment]


def is_valid_address(address: str) -> bool:
    return bool(ADDRESS_PATTERN.match(address))


def validate_roles(config: RoleConfig) -> ValidationResult:
    """
    Validate that every required role is assigned a well-formed, non-zero address

    Returns:
        VALID, or one reason per offending role
    """
    reasons = []
    for role in REQUIRED_ROLES:
        address = getattr(config, role)
        if is_zero_address(address):
            reasons.append(f"Missing or invalid {role} address")
        elif not is_valid_address(address):
            reasons.append(f"Invalid {role} address: {address}")
    for role, label in OPTIONAL_ROLES:
        address = getattr(config, role)
        if address and not is_valid_address(address):
            reasons.append(f"Invalid {label} address: {address}")
    return invalid(reasons) if reasons else VALID


def unique_addresses(config: RoleConfig) -> List[str]:
    """Unique lowercase addresses across all assigned roles, in declaration order"""
    seen: List[str] = []
    for address in config.assigned().values():
        if not is_zero_address(address) and address.lower() not in seen:
            seen.append(address.lower())
    return seen


def roles_for_address(config: RoleConfig, address: str) -> List[str]:
    target = address.lower()
    return [role for role, value in config.assigned().items() if value.lower() == target]


def security_warnings(config: RoleConfig, environment: Environment) -> List[str]:
    """Non-fatal observations about how roles are distributed"""
    warnings = []

    if len(unique_addresses(config)) < 3:
        warnings.append("Very few unique addresses - consider distributing roles for better security")

    if len(roles_for_address(config, config.owner)) > 4:
        warnings.append("Owner has many roles - consider distributing for better security")

    if not config.emergency_admin:
        warnings.append("No emergency admin set - recommended for production")

    if environment is Environment.MAINNET and not config.governance:
        warnings.append("No governance address set for mainnet (recommended)")

    duplicates = []
    seen = set()
    for role in REQUIRED_ROLES:
        address = getattr(config, role).lower()
        if address in seen:
            duplicates.append(role)
        seen.add(address)
    if duplicates:
        warnings.append(f"Duplicate addresses found for roles: {', '.join(duplicates)}")

    return warnings


def generate_env_vars(config: RoleConfig) -> Dict[str, str]:
    """Environment variables consumed by the Forge verification script"""
    env = {
        'OWNER': config.owner,
        'OPERATIONAL_1': config.operational1,
        'OPERATIONAL_2': config.operational2,
        'TREASURY': config.treasury,
        'FIAT': config.fiat,
        'PAUSER': config.pauser,
        'UPGRADER': config.upgrader,
    }
    optional = {
        'EMERGENCY_ADMIN': config.emergency_admin,
        'GOVERNANCE': config.governance,
        'PARTNER_1': config.partner1,
        'PARTNER_2': config.partner2,
        'LISTER': config.lister,
        'BUYER': config.buyer,
        'RENEWER': config.renewer,
        'WITHDRAWER': config.withdrawer,
    }
    env.update({key: value for key, value in optional.items() if value})
    return env


def role_grants(config: RoleConfig, role_ids: RoleIds) -> List[RoleGrant]:
    """Grants in the order they must be applied on the Roles contract"""
    return [
        RoleGrant(role_ids.fiat, (config.fiat,), "FIAT"),
        RoleGrant(role_ids.owner, (config.owner,), "OWNER"),
        RoleGrant(role_ids.pauser, (config.pauser,), "PAUSER"),
        RoleGrant(role_ids.upgrader, (config.upgrader,), "UPGRADER"),
        RoleGrant(role_ids.treasury, (config.treasury,), "TREASURY"),
        RoleGrant(role_ids.operational, (config.operational1, config.operational2), "OPERATIONAL"),
    ]


def describe(config: RoleConfig, environment: str) -> List[str]:
    """Human readable lines describing a roles configuration"""
    lines = [
        f"Environment: {environment.upper()}",
        "Core Administrative Roles:",
        f"  Owner: {config.owner}",
        f"  Operational 1: {config.operational1}",
        f"  Operational 2: {config.operational2}",
        "Financial Roles:",
        f"  Treasury: {config.treasury}",
        f"  Fiat: {config.fiat}",
        "Security Roles:",
        f"  Pauser: {config.pauser}",
        f"  Upgrader: {config.upgrader}",
    ]
    optional = [(label, getattr(config, role)) for role, label in OPTIONAL_ROLES if getattr(config, role)]
    if optional:
        lines.append("Optional Roles:")
        lines.extend(f"  {label}: {address}" for label, address in optional)
    return lines
