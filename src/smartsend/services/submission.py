"""Submission of signed operations to the relay.

A signed operation is submitted at most once; failures are terminal for the
attempt and never retried here.
"""

import logging

from smartsend.errors import SubmissionFailed
from smartsend.models import (
    SignedOperation,
    SignMode,
    SmartAccount,
    TransactionResult,
    TransactionStatus,
)
from smartsend.relay.base import Relay, RelayError

logger = logging.getLogger(__name__)


class SubmissionTracker:
    """Submits signed operations and records their transaction hashes."""

    def __init__(self, relay: Relay, network_id: int):
        self.relay = relay
        self.network_id = network_id
        self._submitted: set[bytes] = set()

    async def submit(self, signed: SignedOperation, smart_account: SmartAccount) -> TransactionResult:
        """Submit a signed operation.

        Raises:
            SubmissionFailed: Already submitted, relay rejected it, or no
                transaction hash came back
        """
        if signed.signature in self._submitted:
            raise SubmissionFailed("Signed operation was already submitted")
        self._submitted.add(signed.signature)

        try:
            tx_hash = await self.relay.submit_operation(
                signed.signature,
                signed.operation_envelope,
                self.network_id,
                smart_account.smart_account_address,
                SignMode.ECDSA,
            )
        except RelayError as e:
            logger.error(f"Relay rejected submission: {e}")
            raise SubmissionFailed(f"Submission failed: {e}", cause=e) from e
        except Exception as e:
            logger.error(f"Unexpected error submitting operation: {e}")
            raise SubmissionFailed(f"Submission failed: {e}", cause=e) from e

        if not tx_hash:
            raise SubmissionFailed("Relay returned no transaction hash")

        result = TransactionResult(transaction_hash=tx_hash, status=TransactionStatus.SUBMITTED)
        logger.info(f"Transaction Hash: {tx_hash}")
        return result
