"""
Post-deployment Initialization Toolkit
======================================

Resolves the proxy addresses of a fresh contract deployment, validates the
fee and role configuration and runs the ordered setup transactions.

Structure:
- environments: closed environment selector and network table
- payments_config / roles_config: per-environment configuration
- validation: fee configuration checks
- deployment_record: broadcast record loading and positional resolution
- registry: final address table and deployments file
- retry / orchestrator: sequential transaction execution
- chain: web3 adapter used by the orchestration plan
- plan: the initialization task list
- cli: command line entry point
"""

__version__ = "1.0.0"
__author__ = "Crutrade Team"
