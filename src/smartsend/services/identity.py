"""Custodial identity resolution.

Resolves the user's custodial address from the key-management provider:
current user -> organization -> wallet -> account -> address.
"""

import logging
from typing import Optional, Sequence, TypeVar

from smartsend.config import WalletSelection
from smartsend.custody.base import KeyProvider, KeyProviderError
from smartsend.errors import IdentityUnavailable
from smartsend.models import WalletIdentity
from smartsend.units import is_valid_address

logger = logging.getLogger(__name__)

T = TypeVar("T")


class IdentityResolver:
    """Resolves a WalletIdentity for the authenticated session."""

    def __init__(
        self,
        key_provider: Optional[KeyProvider],
        selection: WalletSelection = WalletSelection.FIRST,
    ):
        """Initialize resolver.

        Args:
            key_provider: Provider bound to the authenticated client, or None
                when there is no session
            selection: Policy used when several wallets/accounts exist
        """
        self.key_provider = key_provider
        self.selection = selection

    def _select(self, items: Sequence[T], kind: str) -> T:
        if not items:
            raise IdentityUnavailable(f"No {kind} found")

        if len(items) > 1:
            if self.selection == WalletSelection.SINGLE:
                raise IdentityUnavailable(f"Expected one {kind}, found {len(items)}")
            logger.info(f"Found {len(items)} {kind}s, using the first")

        return items[0]

    async def resolve(self) -> WalletIdentity:
        """Resolve the custodial identity.

        Returns:
            WalletIdentity for the session

        Raises:
            IdentityUnavailable: No session, organization, wallet or account
        """
        if self.key_provider is None:
            raise IdentityUnavailable("No authenticated client")

        try:
            user = await self.key_provider.get_current_user()
            if user is None:
                raise IdentityUnavailable("No authenticated user")
            if not user.organization_id:
                raise IdentityUnavailable(f"User {user.user_id} has no organization")

            organization_id = user.organization_id
            wallets = await self.key_provider.get_wallets(organization_id)
            wallet = self._select(wallets, "wallet")

            accounts = await self.key_provider.get_wallet_accounts(organization_id, wallet.wallet_id)
            account = self._select(accounts, "account")

        except KeyProviderError as e:
            logger.error(f"Error fetching wallet info: {e}")
            raise IdentityUnavailable(f"Key provider error: {e}", cause=e) from e

        if not is_valid_address(account.address):
            raise IdentityUnavailable(f"Malformed custodial address: {account.address!r}")

        logger.info(f"Resolved custodial address {account.address} (org {organization_id})")
        return WalletIdentity(organization_id=organization_id, custodial_address=account.address)
