"""Transfer session orchestration.

Owns the shared SessionState and drives the pipeline:

    bootstrap():  IdentityResolver -> AccountProvisioner -> BalancePoller.start()
    transfer():   Idle -> Validating -> Building -> AwaitingSignature
                  -> Submitting -> Completed | Failed

Each stage is fully awaited before the next starts. Polling runs in the
background and never blocks a transfer.
"""

import logging
from typing import Optional

from smartsend.config import TOKEN_DECIMALS, Settings, get_settings
from smartsend.custody.base import KeyProvider
from smartsend.errors import (
    AccountNotReady,
    BuildFailed,
    ProvisioningFailed,
    SessionClosedError,
    SigningFailed,
    SubmissionFailed,
    TransferInProgress,
    ValidationError,
)
from smartsend.models import SessionState, TransferAttempt, TransferRequest, TransferState
from smartsend.relay.base import Relay
from smartsend.services.balance_poller import BalancePoller
from smartsend.services.identity import IdentityResolver
from smartsend.services.provisioning import AccountProvisioner
from smartsend.services.signer import RemoteSigner
from smartsend.services.submission import SubmissionTracker
from smartsend.services.transfer_builder import TransferRequestBuilder, validate_transfer
from smartsend.units import format_balance

logger = logging.getLogger(__name__)


class TransferSession:
    """One user's session: identity, smart account, balance and transfers."""

    def __init__(
        self,
        key_provider: Optional[KeyProvider],
        relay: Relay,
        settings: Optional[Settings] = None,
    ):
        """Initialize session.

        Args:
            key_provider: Provider bound to the authenticated client
                (None = not authenticated)
            relay: Account-abstraction relay
            settings: Settings override (defaults to get_settings())
        """
        self.settings = settings or get_settings()
        self.state = SessionState()
        self._closed = False

        self.identity_resolver = IdentityResolver(key_provider, self.settings.wallet_selection)
        self.provisioner = AccountProvisioner(relay, self.settings.network_id)
        self.poller = BalancePoller(relay, self.state, self.settings.poll_interval_ms)
        self.builder = TransferRequestBuilder(
            relay, self.settings.network_id, self.settings.token_contract
        )
        self.signer = RemoteSigner(key_provider)
        self.tracker = SubmissionTracker(relay, self.settings.network_id)

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError("Session has been torn down")

    async def bootstrap(self, start_polling: bool = True) -> SessionState:
        """Resolve identity, provision the smart account and start polling.

        Runs once; calling again after success returns the existing state.

        Raises:
            IdentityUnavailable: Not authenticated - leave the flow
            ProvisioningFailed: Smart account unavailable - transfers blocked
        """
        self._ensure_open()

        if not self.state.is_ready:
            self.state.is_loading = True
            self.state.error = None

            try:
                if self.state.identity is None:
                    identity = await self.identity_resolver.resolve()
                    if self._closed:
                        return self.state
                    self.state.identity = identity

                try:
                    account, balance = await self.provisioner.provision(self.state.identity)
                except ProvisioningFailed as e:
                    if not self._closed:
                        self.state.error = e.user_message
                    raise

                if self._closed:
                    return self.state
                self.state.smart_account = account
                self.state.balance = balance
            finally:
                self.state.is_loading = False

        if start_polling:
            self.poller.start()
        return self.state

    def set_transfer_input(self, recipient_address: str, amount: str) -> None:
        self.state.recipient_address = recipient_address
        self.state.transfer_amount = amount

    def can_transfer(self) -> bool:
        """Whether the transfer action should be enabled."""
        if self._closed or not self.state.is_ready or self.state.is_transferring:
            return False
        try:
            validate_transfer(self.state.recipient_address, self.state.transfer_amount, TOKEN_DECIMALS)
        except ValidationError:
            return False
        return True

    def _advance(self, attempt: TransferAttempt, state: TransferState) -> None:
        attempt.advance(state)
        self.state.transfer_state = state
        logger.debug(f"Transfer state -> {state.value}")

    def _discard(self, attempt: TransferAttempt) -> TransferAttempt:
        logger.warning(f"Session closed during {attempt.state.value} - discarding transfer result")
        attempt.discarded = True
        return attempt

    async def transfer(
        self,
        recipient_address: Optional[str] = None,
        amount: Optional[str] = None,
    ) -> TransferAttempt:
        """Run one transfer attempt from the current input.

        Build, signing and submission failures end the attempt in FAILED and
        are reported on the returned attempt, not raised.

        Args:
            recipient_address: Optional input override
            amount: Optional input override (decimal string, major units)

        Returns:
            TransferAttempt with state history and result

        Raises:
            TransferInProgress: Another attempt is in flight
            AccountNotReady: No smart account
            ValidationError: Invalid input (state stays IDLE, nothing sent)
        """
        self._ensure_open()

        if self.state.is_transferring:
            raise TransferInProgress("A transfer is already in progress")
        if not self.state.is_ready:
            raise AccountNotReady("Smart account not provisioned")

        if recipient_address is not None or amount is not None:
            self.set_transfer_input(
                recipient_address if recipient_address is not None else self.state.recipient_address,
                amount if amount is not None else self.state.transfer_amount,
            )

        request = TransferRequest(
            recipient_address=self.state.recipient_address,
            amount_major_units=self.state.transfer_amount,
        )
        attempt = TransferAttempt(request=request)
        self._advance(attempt, TransferState.IDLE)

        # Guard on Idle -> Validating; invalid input never leaves Idle
        validate_transfer(request.recipient_address, request.amount_major_units, TOKEN_DECIMALS)

        identity = self.state.identity
        account = self.state.smart_account

        self.state.transfer_error = None
        self.state.is_transferring = True

        try:
            self._advance(attempt, TransferState.VALIDATING)
            self._advance(attempt, TransferState.BUILDING)
            operation = await self.builder.build(request, account)
            if self._closed:
                return self._discard(attempt)

            self._advance(attempt, TransferState.AWAITING_SIGNATURE)
            signed = await self.signer.sign(operation, identity)
            if self._closed:
                return self._discard(attempt)

            self._advance(attempt, TransferState.SUBMITTING)
            result = await self.tracker.submit(signed, account)
            attempt.result = result
            if self._closed:
                return self._discard(attempt)

            self._advance(attempt, TransferState.COMPLETED)
            self.state.last_transaction_hash = result.transaction_hash
            self.state.clear_input()

        except (BuildFailed, SigningFailed, SubmissionFailed) as e:
            logger.error(f"Transfer error: {e}")
            attempt.error = e
            attempt.advance(TransferState.FAILED)
            if not self._closed:
                self.state.transfer_error = e.user_message

        finally:
            self.state.is_transferring = False
            self.state.transfer_state = TransferState.IDLE

        return attempt

    def display_balance(self) -> str:
        balance = self.state.balance
        return format_balance(
            balance.amount_minor_units if balance else None,
            TOKEN_DECIMALS,
            self.settings.token_symbol,
        )

    async def close(self) -> None:
        """Tear down: stop polling; in-flight transfer results are discarded."""
        if self._closed:
            return
        self._closed = True
        await self.poller.stop()
        logger.info("Session closed")

    async def __aenter__(self) -> "TransferSession":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
