#!/usr/bin/env python3
"""
Post-deployment initialization CLI

    postdeploy check [network]        validate fee and role configuration
    postdeploy addresses [network]    resolve proxy addresses and write deployments/
    postdeploy verify-env [network]   write .env.verification for the Forge verifier
    postdeploy init [network]         run the initialization transactions

Exit code is 0 on success and 1 on validation failure, unresolved address
or orchestration halt.
"""

import argparse
import json
import logging
import sys
from typing import Dict, List, Optional, Tuple

from dotenv import load_dotenv

from . import payments_config, roles_config
from .chain import ChainClient
from .deployment_record import (
    DeploymentRecord,
    confirm_by_implementation,
    latest_broadcast_path,
    load_record,
    resolve,
)
from .environments import Environment, get_network_config
from .errors import ConfigInvalid, DeploymentRecordUnavailable, PostDeployError
from .notifications import send_slack_alert
from .orchestrator import TransactionOrchestrator
from .plan import PlanConfig, build_init_plan
from .registry import AddressTable, build, read_deployment, write_deployment
from .retry import RetryPolicy
from .settings import Settings, configure_logging, load_settings, validate_network
from .validation import validate
from .verification import verification_env, write_env_file

logger = logging.getLogger(__name__)


def parse_override(value: str) -> Tuple[str, str]:
    name, sep, address = value.partition("=")
    if not sep or not name or not address:
        raise argparse.ArgumentTypeError(f"Expected Name=0xAddress, got {value!r}")
    return name, address


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected a positive integer, got {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"Expected a positive integer, got {value!r}")
    return number


def load_fee_config(path: Optional[str], environment: Environment) -> payments_config.FeeConfig:
    """Custom fee configuration from a JSON file, or the environment's default"""
    if not path:
        return payments_config.get_payments_config(environment)
    try:
        with open(path, 'r') as f:
            return payments_config.fee_config_from_dict(json.load(f))
    except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        raise ConfigInvalid([f"Could not load fee configuration from {path}: {e}"]) from e


def check_configuration(environment: Environment, fees: payments_config.FeeConfig,
                        roles: roles_config.RoleConfig):
    """Validate both configurations, raising ConfigInvalid with every violation"""
    for line in payments_config.describe(fees):
        logger.info(line)
    for line in roles_config.describe(roles, environment.value):
        logger.info(line)

    summary = payments_config.fee_summary(fees)
    logger.info(f"Fee summary: highest seller {summary['highest_seller_fee']:g}%, "
                f"highest buyer {summary['highest_buyer_fee']:g}%")

    reasons = list(validate(fees).reasons) + list(roles_config.validate_roles(roles).reasons)
    for warning in roles_config.security_warnings(roles, environment):
        logger.warning(warning)
    if reasons:
        raise ConfigInvalid(reasons)
    logger.info(f"{environment} configuration is valid")


def resolve_addresses(environment: Environment, settings: Settings,
                      overrides: Dict[str, str], strict: bool = False) -> AddressTable:
    network = get_network_config(environment)
    # No broadcast yet is tolerated; an unreadable one is fatal
    try:
        path = latest_broadcast_path(settings.broadcast_dir, network.chain_id)
    except DeploymentRecordUnavailable as e:
        logger.warning(f"{e}")
        record = DeploymentRecord()
    else:
        record = load_record(path)

    resolved = resolve(record)
    for name, address in resolved.items():
        logger.info(f"  Mapped {environment} {name} -> proxy {address}")

    mismatched = confirm_by_implementation(record, resolved)
    for name in mismatched:
        logger.warning(f"  Proxy for {name} does not point at the {name} implementation")
    if mismatched and strict:
        raise ConfigInvalid([f"Positional address for {name} failed name-based confirmation"
                             for name in mismatched])

    partial = dict(read_deployment(settings.deployments_dir, environment))
    partial.update(resolved)
    return build(environment, partial, overrides, record)


def _overrides(args) -> Dict[str, str]:
    return dict(args.override or [])


def cmd_check(args, environment: Environment, settings: Settings) -> int:
    fees = load_fee_config(args.fees, environment)
    check_configuration(environment, fees, roles_config.get_roles_config(environment))
    return 0


def cmd_addresses(args, environment: Environment, settings: Settings) -> int:
    table = resolve_addresses(environment, settings, _overrides(args), args.strict)
    write_deployment(table, settings.deployments_dir)
    for name, address in table.addresses.items():
        logger.info(f"  {name}: {address} ({table.sources[name]})")
    if table.unresolved():
        logger.warning(f"Unresolved contracts: {', '.join(table.unresolved())}")
    return 0


def cmd_verify_env(args, environment: Environment, settings: Settings) -> int:
    fees = load_fee_config(args.fees, environment)
    roles = roles_config.get_roles_config(environment)
    check_configuration(environment, fees, roles)
    table = resolve_addresses(environment, settings, _overrides(args), args.strict)
    write_env_file(verification_env(table, roles, fees, environment), args.output)
    return 0


def cmd_init(args, environment: Environment, settings: Settings) -> int:
    fees = load_fee_config(args.fees, environment)
    roles = roles_config.get_roles_config(environment)
    check_configuration(environment, fees, roles)

    network = validate_network(environment, settings)
    table = resolve_addresses(environment, settings, _overrides(args), args.strict)

    chain = ChainClient(
        settings.rpc_for(environment),
        settings.private_key_for(environment),
        artifacts_dir=settings.artifacts_dir,
    )
    plan_config = PlanConfig(
        roles=roles,
        role_ids=roles_config.DEFAULT_ROLE_IDS,
        brand_owner=chain.address,
        payment_token=settings.payment_token_for(environment),
        payment_decimals=network.payment_decimals,
    )
    tasks = build_init_plan(chain, table, plan_config)

    if args.dry_run:
        for index, task in enumerate(tasks, 1):
            logger.info(f"  {index}. {task.description}")
        logger.info(f"Dry run: {len(tasks)} tasks planned, nothing submitted")
        return 0

    logger.info(f"Initializing {environment} ({len(tasks)} transactions)...")
    orchestrator = TransactionOrchestrator(
        chain.wait_for_receipt,
        RetryPolicy(max_retries=args.max_retries),
    )
    result = orchestrator.run(tasks)
    if not result.succeeded:
        failure = result.failure
        independent = result.independent_skipped()
        for task in independent:
            logger.warning(f"  Not run, does not depend on the failed task: {task.description}")
        send_slack_alert(settings.slack_webhook, f"Init failed on {environment}: {failure.error}", {
            "Failed task": failure.description,
            "Confirmed": str(len(result.receipts)),
            "Not run": str(len(result.skipped)),
            "Independent": ", ".join(task.description for task in independent) or "none",
        })
        return 1

    logger.info("Initialization complete")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="postdeploy", description="Post-deployment initialization")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_command(name: str, handler, help_text: str):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("network", nargs="?", default=None,
                         help="local|dev, testnet|fuji or mainnet (default: $NETWORK or testnet)")
        sub.set_defaults(handler=handler)
        return sub

    check = add_command("check", cmd_check, "validate fee and role configuration")
    check.add_argument("--fees", help="custom fee configuration JSON file")

    for name, handler, help_text in (
        ("addresses", cmd_addresses, "resolve addresses and write the deployments file"),
        ("verify-env", cmd_verify_env, "write environment variables for deployment verification"),
        ("init", cmd_init, "run the initialization transactions"),
    ):
        sub = add_command(name, handler, help_text)
        sub.add_argument("--override", action="append", type=parse_override, metavar="NAME=ADDRESS",
                         help="explicit address for a logical contract name")
        sub.add_argument("--strict", action="store_true",
                         help="fail when positional addresses disagree with name-based confirmation")
        if name != "addresses":
            sub.add_argument("--fees", help="custom fee configuration JSON file")
        if name == "verify-env":
            sub.add_argument("--output", default=".env.verification")
        if name == "init":
            sub.add_argument("--dry-run", action="store_true", help="list the transactions without sending them")
            sub.add_argument("--max-retries", type=positive_int, default=5,
                                 help="confirmation attempts per transaction")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    settings = load_settings()
    args = build_parser().parse_args(argv)
    configure_logging(settings)

    try:
        environment = Environment.parse(args.network or settings.network)
        return args.handler(args, environment, settings)
    except PostDeployError as e:
        logger.error(f"{args.command} failed: {e}")
        send_slack_alert(settings.slack_webhook, f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
