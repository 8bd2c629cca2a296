"""
Runtime settings and logging setup

Settings come from the process environment, optionally populated from a
.env file by the CLI.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from .environments import Environment, NetworkConfig, get_network_config
from .errors import ConfigInvalid

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


@dataclass(frozen=True)
class Settings:
    network: str = "testnet"
    private_key: Optional[str] = None
    rpc_url: Optional[str] = None
    testnet_rpc: Optional[str] = None
    mainnet_rpc: Optional[str] = None
    payment_token: Optional[str] = None
    slack_webhook: Optional[str] = None
    broadcast_dir: str = os.path.join("broadcast", "deploy.s.sol")
    deployments_dir: str = "deployments"
    artifacts_dir: str = "out"
    log_file: str = "postdeploy.log"
    log_level: str = "INFO"

    def rpc_for(self, environment: Environment) -> str:
        """Generic RPC_URL wins, then the per-network variable, then the public endpoint"""
        network = get_network_config(environment)
        per_network = {
            "TESTNET_RPC": self.testnet_rpc,
            "MAINNET_RPC": self.mainnet_rpc,
        }.get(network.rpc_env_var or "")
        return self.rpc_url or per_network or network.rpc_url

    def private_key_for(self, environment: Environment) -> Optional[str]:
        return self.private_key or get_network_config(environment).default_private_key

    def payment_token_for(self, environment: Environment) -> Optional[str]:
        return self.payment_token or get_network_config(environment).payment_token


def load_settings() -> Settings:
    """Read settings from environment variables"""
    return Settings(
        network=os.getenv("NETWORK", "testnet"),
        private_key=os.getenv("PRIVATE_KEY"),
        rpc_url=os.getenv("RPC_URL"),
        testnet_rpc=os.getenv("TESTNET_RPC"),
        mainnet_rpc=os.getenv("MAINNET_RPC"),
        payment_token=os.getenv("PAYMENT_TOKEN"),
        slack_webhook=os.getenv("SLACK_WEBHOOK"),
        broadcast_dir=os.getenv("BROADCAST_DIR", os.path.join("broadcast", "deploy.s.sol")),
        deployments_dir=os.getenv("DEPLOYMENTS_DIR", "deployments"),
        artifacts_dir=os.getenv("ARTIFACTS_DIR", "out"),
        log_file=os.getenv("LOG_FILE", "postdeploy.log"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )


def validate_network(environment: Environment, settings: Settings) -> NetworkConfig:
    """Require a signing key for every network except local"""
    if settings.private_key_for(environment) is None:
        raise ConfigInvalid([f"Missing PRIVATE_KEY for network: {environment}"])
    return get_network_config(environment)


def configure_logging(settings: Settings):
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(settings.log_file),
            logging.StreamHandler()
        ]
    )
