"""
Environment selector and shared network configuration
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from .errors import UnknownEnvironment

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# First anvil account, only ever used against a local node
ANVIL_ADDRESS_1_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"


class Environment(Enum):
    LOCAL = "local"
    TESTNET = "testnet"
    MAINNET = "mainnet"

    @classmethod
    def parse(cls, key: str) -> "Environment":
        """Map a user-supplied key (case-insensitive, aliases allowed) to an environment"""
        try:
            return _ALIASES[key.strip().lower()]
        except (KeyError, AttributeError):
            raise UnknownEnvironment(key) from None

    def __str__(self):
        return self.value


_ALIASES: Dict[str, Environment] = {
    "local": Environment.LOCAL,
    "dev": Environment.LOCAL,
    "testnet": Environment.TESTNET,
    "fuji": Environment.TESTNET,
    "mainnet": Environment.MAINNET,
}


@dataclass(frozen=True)
class NetworkConfig:
    """Static per-network parameters"""
    chain_id: int
    rpc_url: str
    rpc_env_var: Optional[str]
    payment_token: Optional[str] = None
    payment_decimals: int = 6
    default_private_key: Optional[str] = None


NETWORK_CONFIGS: Dict[Environment, NetworkConfig] = {
    Environment.LOCAL: NetworkConfig(
        chain_id=31337,
        rpc_url="http://127.0.0.1:8545",
        rpc_env_var=None,
        default_private_key=ANVIL_ADDRESS_1_PRIVATE_KEY,
    ),
    Environment.TESTNET: NetworkConfig(
        chain_id=43113,
        rpc_url="https://api.avax-test.network/ext/bc/C/rpc",
        rpc_env_var="TESTNET_RPC",
        payment_token="0x5425890298aed601595a70AB815c96711a31Bc65",
    ),
    Environment.MAINNET: NetworkConfig(
        chain_id=43114,
        rpc_url="https://api.avax.network/ext/bc/C/rpc",
        rpc_env_var="MAINNET_RPC",
        payment_token="0xB97EF9Ef8734C71904D8002F8b6Bc66Dd9c48a6E",
    ),
}


def get_network_config(environment: Environment) -> NetworkConfig:
    return NETWORK_CONFIGS[environment]


def is_zero_address(address: Optional[str]) -> bool:
    """True for missing values and any spelling of the all-zero address"""
    if not address:
        return True
    return address.lower() == ZERO_ADDRESS
