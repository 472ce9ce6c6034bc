"""Background balance polling for the smart account.

Runs as an asyncio task on a fixed cadence. A failed tick keeps the last
known balance; the loop itself only ends on stop().
"""

import asyncio
import logging
from typing import Callable, Optional

from smartsend.errors import PollFailed
from smartsend.models import Balance, SessionState
from smartsend.relay.base import Relay, RelayError

logger = logging.getLogger(__name__)


class BalancePoller:
    """Periodically refreshes SessionState.balance from the relay."""

    def __init__(
        self,
        relay: Relay,
        state: SessionState,
        interval_ms: int = 2000,
        on_update: Optional[Callable[[Balance], None]] = None,
    ):
        """Initialize poller.

        Args:
            relay: Relay to read balances from
            state: Session state; the poller is the only writer of its balance
            interval_ms: Milliseconds between ticks
            on_update: Optional callback invoked with each fresh balance
        """
        self.relay = relay
        self.state = state
        self.interval = interval_ms / 1000
        self.on_update = on_update
        self.ticks = 0
        self.last_error: Optional[PollFailed] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self.state.is_polling

    def start(self) -> bool:
        """Start polling. Must be called from a running event loop.

        Returns:
            True if a new loop was started, False if already running or no
            smart account exists yet
        """
        if self.state.is_polling:
            logger.debug("Balance poller already running")
            return False

        if self.state.smart_account is None:
            logger.debug("No smart account yet - not polling")
            return False

        self.state.is_polling = True
        self._task = asyncio.create_task(self._run())
        logger.info(
            f"Started balance polling for {self.state.smart_account.smart_account_address} "
            f"(interval: {self.interval}s)"
        )
        return True

    async def stop(self) -> None:
        """Stop polling. No tick runs after this returns."""
        task, self._task = self._task, None
        self.state.is_polling = False

        if task is None:
            return

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Stopped balance polling")

    async def poll_once(self) -> Optional[Balance]:
        """Run a single tick.

        Returns:
            Fresh balance, or None if skipped (no account) or failed
        """
        account = self.state.smart_account
        if account is None:
            return None

        self.ticks += 1
        logger.debug(f"Fetching balance for {account.smart_account_address}")

        try:
            amount = await self.relay.get_balance(account.smart_account_address)
        except RelayError as e:
            self.last_error = PollFailed(f"Balance poll failed: {e}", cause=e)
            logger.warning(f"Error polling balance: {e}")
            return None

        balance = Balance(amount_minor_units=amount)
        self.state.balance = balance
        self.last_error = None

        if self.on_update:
            self.on_update(balance)
        return balance

    async def _run(self) -> None:
        while True:
            try:
                await self.poll_once()
            except Exception as e:
                logger.error(f"Unexpected balance poll error: {e}")
            await asyncio.sleep(self.interval)
