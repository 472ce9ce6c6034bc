"""Dry-run key provider for testing (no real custody).

Holds a throwaway in-memory key so the rest of the pipeline can verify real
signatures. Never use outside dev/test.
"""

import logging
from typing import Optional

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import keccak

from smartsend.custody.base import (
    CurrentUser,
    KeyProvider,
    KeyProviderError,
    SignerBinding,
    Wallet,
    WalletAccount,
)

logger = logging.getLogger(__name__)

SIMULATED_ORGANIZATION_ID = "sim-org-000001"
SIMULATED_WALLET_ID = "sim-wallet-000001"


class DryRunKeyProvider(KeyProvider):
    """Simulated provider with one organization, one wallet and one account."""

    def __init__(self, seed: str = "smartsend-dry-run", organization_id: str = SIMULATED_ORGANIZATION_ID):
        # Deterministic key so addresses are stable across runs
        self._account = Account.from_key(keccak(text=seed))
        self.organization_id = organization_id
        self.authenticated = True

    @property
    def name(self) -> str:
        return "dryrun"

    @property
    def address(self) -> str:
        return self._account.address

    async def get_current_user(self) -> Optional[CurrentUser]:
        if not self.authenticated:
            return None
        return CurrentUser(user_id="sim-user", organization_id=self.organization_id, username="dry-run")

    async def get_wallets(self, organization_id: str) -> list[Wallet]:
        if organization_id != self.organization_id:
            return []
        return [Wallet(wallet_id=SIMULATED_WALLET_ID, wallet_name="Default Wallet")]

    async def get_wallet_accounts(self, organization_id: str, wallet_id: str) -> list[WalletAccount]:
        if organization_id != self.organization_id or wallet_id != SIMULATED_WALLET_ID:
            return []
        return [WalletAccount(address=self.address, wallet_id=wallet_id, path="m/44'/60'/0'/0/0")]

    async def sign_message(self, binding: SignerBinding, digest: bytes) -> bytes:
        if binding.sign_with.lower() != self.address.lower():
            raise KeyProviderError(f"No key for {binding.sign_with}")

        signed = self._account.sign_message(encode_defunct(primitive=digest))
        logger.info(f"[SIMULATED] Signed {len(digest)}-byte digest with {self.address}")
        return bytes(signed.signature)
