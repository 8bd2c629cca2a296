"""
Web3 chain client

Signs and submits contract calls from a single account and waits for their
receipts, translating web3 failures into the package error taxonomy.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

import requests
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3RPCError
from web3.middleware import ExtraDataToPOAMiddleware

from .errors import ChainUnavailable, SubmissionRejected, TransactionReverted, TransactionTimeout

logger = logging.getLogger(__name__)

RECEIPT_POLL_LATENCY = 1.0


def get_contract_abi(file_path: str):
    """Loads a contract ABI from its JSON artifact."""
    with open(file_path, 'r') as f:
        data = json.load(f)
    return data['abi']


def short_address(address: str) -> str:
    return f"{address[:6]}...{address[-4:]}"


class ChainClient:
    def __init__(self, rpc_url: str, private_key: str, artifacts_dir: str = "out",
                 w3: Optional[Web3] = None, request_timeout: int = 30):
        self.rpc_url = rpc_url
        self.artifacts_dir = artifacts_dir
        self._abis: Dict[str, Any] = {}

        if w3 is None:
            w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={'timeout': request_timeout}))
            w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        self.w3 = w3

        try:
            connected = self.w3.is_connected()
        except requests.exceptions.RequestException as e:
            raise ChainUnavailable(f"Could not connect to RPC URL: {rpc_url}: {e}") from e
        if not connected:
            raise ChainUnavailable(f"Could not connect to RPC URL: {rpc_url}")

        self.account = self.w3.eth.account.from_key(private_key)
        self.chain_id = self.w3.eth.chain_id
        logger.info(f"Connected to chain {self.chain_id} at {rpc_url} as {self.account.address}")

    @property
    def address(self) -> str:
        return self.account.address

    def load_abi(self, name: str):
        """ABI from the Foundry artifact out/<name>.sol/<name>.json"""
        if name not in self._abis:
            path = os.path.join(self.artifacts_dir, f"{name}.sol", f"{name}.json")
            self._abis[name] = get_contract_abi(path)
        return self._abis[name]

    def contract(self, name: str, address: str):
        return self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=self.load_abi(name))

    def transact(self, call) -> str:
        """
        Build, sign and send a contract function call

        Args:
            call: Bound contract function, e.g. roles.functions.grantRole(role, account)

        Returns:
            Transaction hash as a 0x-prefixed hex string
        """
        try:
            tx = call.build_transaction({
                'from': self.account.address,
                'nonce': self.w3.eth.get_transaction_count(self.account.address, 'pending'),
                'chainId': self.chain_id,
            })
            signed_tx = self.account.sign_transaction(tx)
            tx_hash = self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
        except ContractLogicError as e:
            raise SubmissionRejected(f"Call would revert: {e}") from e
        except (Web3RPCError, ValueError) as e:
            raise SubmissionRejected(f"Node rejected transaction: {e}") from e
        except requests.exceptions.RequestException as e:
            raise SubmissionRejected(f"Could not submit transaction: {e}") from e

        tx_hex = Web3.to_hex(tx_hash)
        logger.info(f"  Transaction sent: {tx_hex}")
        return tx_hex

    def wait_for_receipt(self, tx_hash: str, timeout: float):
        """
        Wait for one confirmation of a transaction

        Raises:
            TransactionTimeout: receipt not seen within timeout, or the RPC call failed
            TransactionReverted: the transaction was mined with status 0
        """
        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=timeout, poll_latency=RECEIPT_POLL_LATENCY
            )
        except TimeExhausted as e:
            raise TransactionTimeout(f"No receipt for {tx_hash} after {timeout}s") from e
        except (Web3RPCError, requests.exceptions.RequestException) as e:
            raise TransactionTimeout(f"RPC error while waiting for {tx_hash}: {e}") from e

        if receipt['status'] != 1:
            raise TransactionReverted(tx_hash, receipt)
        logger.info(f"  Confirmed in block {receipt['blockNumber']}")
        return receipt
