"""Smart account provisioning."""

import logging

from smartsend.errors import ProvisioningFailed
from smartsend.models import Balance, SmartAccount, WalletIdentity
from smartsend.relay.base import Relay, RelayError
from smartsend.units import is_valid_address

logger = logging.getLogger(__name__)


class AccountProvisioner:
    """Creates or fetches the smart account bound to a custodial owner."""

    def __init__(self, relay: Relay, network_id: int):
        self.relay = relay
        self.network_id = network_id

    async def provision(self, identity: WalletIdentity) -> tuple[SmartAccount, Balance]:
        """Create-or-fetch the smart account and seed its balance.

        Idempotent on the relay side: the same owner always yields the same
        smart account address.

        Args:
            identity: Resolved custodial identity

        Returns:
            (SmartAccount, initial Balance)

        Raises:
            ProvisioningFailed: Relay error or malformed relay response
        """
        owner = identity.custodial_address

        try:
            address = await self.relay.create_smart_account(owner)
            if not is_valid_address(address):
                raise RelayError(f"Relay returned malformed smart account address {address!r}")

            account = SmartAccount(
                owner_address=owner,
                smart_account_address=address,
                network_id=self.network_id,
            )
            amount = await self.relay.get_balance(address)

        except RelayError as e:
            logger.error(f"Error creating/fetching smart account for {owner}: {e}")
            raise ProvisioningFailed(f"Smart account provisioning failed: {e}", cause=e) from e

        logger.info(f"Smart account {address} ready for {owner} (balance {amount})")
        return account, Balance(amount_minor_units=amount)
