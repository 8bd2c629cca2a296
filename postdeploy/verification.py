"""
Environment export for the Forge deployment verification script
"""

import json
import logging
from typing import Dict

from .environments import Environment
from .payments_config import FeeConfig, membership_fees_json
from .registry import AddressTable
from .roles_config import RoleConfig, generate_env_vars

logger = logging.getLogger(__name__)

REQUIRED_VARS = (
    "OWNER",
    "OPERATIONAL_1",
    "OPERATIONAL_2",
    "TREASURY_ADDRESS",
    "FIAT_FEE_PERCENTAGE",
)


def verification_env(table: AddressTable, roles: RoleConfig, fees: FeeConfig,
                     environment: Environment) -> Dict[str, str]:
    env = {f"{name.upper()}_ADDRESS": address for name, address in table.addresses.items()}
    env.update(generate_env_vars(roles))
    env['TREASURY_ADDRESS'] = fees.treasury_address
    env['FIAT_FEE_PERCENTAGE'] = str(fees.fiat_fee_basis_points)
    env['MEMBERSHIP_FEES'] = json.dumps(membership_fees_json(fees), separators=(',', ':'))
    env['NETWORK'] = environment.value

    missing = [name for name in REQUIRED_VARS if not env.get(name)]
    if missing:
        logger.warning(f"Missing environment variables, verification may fail: {', '.join(missing)}")
    return env


def write_env_file(values: Dict[str, str], path: str = ".env.verification") -> str:
    with open(path, 'w') as f:
        for key, value in values.items():
            f.write(f"{key}={value}\n")
    logger.info(f"Environment variables written to {path}")
    return path
