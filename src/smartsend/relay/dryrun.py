"""Dry-run relay for testing (no real chain).

Derives deterministic smart account addresses, keeps balances in memory and
checks owner signatures on submit the way a bundler would.
"""

import json
import logging
from typing import Any

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import keccak, to_checksum_address

from smartsend.models import ContractCall, OrderMetadata, SignMode
from smartsend.relay.base import BuiltOperation, Relay, RelayError

logger = logging.getLogger(__name__)

# 100 USDC
DEFAULT_STARTING_BALANCE = 100_000_000


class DryRunRelay(Relay):
    """Simulated relay bound to a single network."""

    def __init__(self, network_id: int, starting_balance: int = DEFAULT_STARTING_BALANCE):
        self.network_id = network_id
        self.starting_balance = starting_balance
        self._owners: dict[str, str] = {}      # smart account -> owner
        self._balances: dict[str, int] = {}
        self._nonces: dict[str, int] = {}

    @property
    def name(self) -> str:
        return "dryrun"

    def derive_address(self, owner_address: str) -> str:
        """Deterministic smart account address for (owner, network)."""
        digest = keccak(text=f"smart-account:{self.network_id}:{owner_address.lower()}")
        return to_checksum_address(digest[-20:])

    async def create_smart_account(self, owner_address: str) -> str:
        address = self.derive_address(owner_address)
        if address not in self._owners:
            self._owners[address] = owner_address
            self._balances[address] = self.starting_balance
            self._nonces[address] = 0
            logger.info(f"[SIMULATED] Created smart account {address} for {owner_address}")
        return address

    def set_balance(self, smart_account_address: str, amount: int) -> None:
        self._balances[smart_account_address] = amount

    async def get_balance(self, smart_account_address: str) -> int:
        if smart_account_address not in self._owners:
            raise RelayError(f"Unknown smart account {smart_account_address}", status_code=404)
        return self._balances[smart_account_address]

    @staticmethod
    def _hash_operation(user_op: dict[str, Any]) -> bytes:
        return keccak(text=json.dumps(user_op, sort_keys=True, separators=(",", ":")))

    async def build_operation(
        self,
        calls: list[ContractCall],
        network_id: int,
        smart_account_address: str,
        order: OrderMetadata,
        sign_mode: SignMode = SignMode.ECDSA,
    ) -> BuiltOperation:
        if network_id != self.network_id:
            raise RelayError(f"Unsupported network {network_id}", status_code=400)
        if smart_account_address not in self._owners:
            raise RelayError(f"Unknown smart account {smart_account_address}", status_code=404)
        if not calls:
            raise RelayError("No calls to execute", status_code=400)
        if order.amount > self._balances[smart_account_address]:
            raise RelayError("Insufficient balance", status_code=400)

        user_op = {
            "sender": smart_account_address,
            "nonce": self._nonces[smart_account_address],
            "chainId": network_id,
            "calls": [call.to_dict() for call in calls],
            "order": order.to_dict(),
            "signMode": sign_mode.value,
        }
        return BuiltOperation(digest_to_sign=self._hash_operation(user_op), operation_envelope=user_op)

    async def submit_operation(
        self,
        signature: bytes,
        operation_envelope: dict[str, Any],
        network_id: int,
        smart_account_address: str,
        sign_mode: SignMode = SignMode.ECDSA,
    ) -> str:
        owner = self._owners.get(smart_account_address)
        if owner is None or operation_envelope.get("sender") != smart_account_address:
            raise RelayError("Operation sender does not match smart account", status_code=400)
        if operation_envelope.get("nonce") != self._nonces[smart_account_address]:
            raise RelayError("Stale nonce", status_code=409)

        digest = self._hash_operation(operation_envelope)
        try:
            recovered = Account.recover_message(encode_defunct(primitive=digest), signature=signature)
        except Exception as e:
            raise RelayError(f"Invalid signature: {e}", status_code=400) from e
        if recovered.lower() != owner.lower():
            raise RelayError("Signature not from smart account owner", status_code=401)

        amount = int(operation_envelope["order"]["amount"])
        if amount > self._balances[smart_account_address]:
            raise RelayError("Insufficient balance", status_code=400)

        self._balances[smart_account_address] -= amount
        self._nonces[smart_account_address] += 1
        tx_hash = "0x" + keccak(digest + signature).hex()

        logger.info(f"[SIMULATED] Submitted operation from {smart_account_address}: {tx_hash}")
        return tx_hash
