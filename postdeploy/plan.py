"""
Initialization plan

Builds the ordered list of setup transactions for a freshly deployed
system. Order matters: roles are granted before any call that needs them,
and the payment token is registered before it becomes the default.
"""

import logging
from dataclasses import dataclass
from functools import partial
from typing import List, Optional

from .chain import short_address
from .orchestrator import TransactionTask
from .registry import AddressTable
from .roles_config import RoleConfig, RoleIds, role_grants

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlanConfig:
    """Everything environment-specific the plan needs, passed in explicitly"""
    roles: RoleConfig
    role_ids: RoleIds
    brand_owner: str
    payment_token: Optional[str] = None
    payment_decimals: int = 6


def _call(chain, contract, function: str, *args):
    return chain.transact(getattr(contract.functions, function)(*args))


def build_init_plan(chain, table: AddressTable, config: PlanConfig) -> List[TransactionTask]:
    """
    Build the initialization tasks

    Args:
        chain: Client exposing contract(name, address) and transact(call)
        table: Resolved addresses; Roles and Brands must be resolved
        config: Role assignments, role ids, payment token and brand owner

    Returns:
        Tasks in execution order
    """
    roles = chain.contract("Roles", table.require("Roles"))
    brands = chain.contract("Brands", table.require("Brands"))

    tasks = []
    for grant in role_grants(config.roles, config.role_ids):
        for account in grant.accounts:
            tasks.append(TransactionTask(
                description=f"Grant {grant.label or grant.role_id[:10]} role to {short_address(account)}",
                submit=partial(_call, chain, roles, "grantRole", grant.role_id, account),
            ))

    if config.payment_token:
        tasks.append(TransactionTask(
            description=f"Set payment token {short_address(config.payment_token)}",
            submit=partial(_call, chain, roles, "setPayment", config.payment_token, config.payment_decimals),
        ))
        tasks.append(TransactionTask(
            description="Set default fiat token",
            submit=partial(_call, chain, roles, "setDefaultFiatToken", config.payment_token),
        ))
    else:
        logger.warning("No payment token configured, skipping payment setup")

    tasks.append(TransactionTask(
        description=f"Register brand for {short_address(config.brand_owner)}",
        submit=partial(_call, chain, brands, "register", config.brand_owner),
    ))
    return tasks
