"""smartsend - custodial stablecoin transfers through an account-abstraction smart account.

Resolves a Turnkey-managed custodial address, provisions its Enclave smart
account, polls the balance and runs build -> remote sign -> submit transfers.
"""

from smartsend.errors import (
    AccountNotReady,
    BuildFailed,
    IdentityUnavailable,
    PollFailed,
    ProvisioningFailed,
    SessionClosedError,
    SigningFailed,
    SubmissionFailed,
    TransferError,
    TransferInProgress,
    ValidationError,
)
from smartsend.models import TransferAttempt, TransferState
from smartsend.services.transfer_builder import is_valid_transfer
from smartsend.session import TransferSession

__version__ = "0.1.0"
__all__ = [
    "TransferSession",
    "TransferAttempt",
    "TransferState",
    "is_valid_transfer",
    "TransferError",
    "IdentityUnavailable",
    "ProvisioningFailed",
    "ValidationError",
    "BuildFailed",
    "SigningFailed",
    "SubmissionFailed",
    "PollFailed",
    "AccountNotReady",
    "TransferInProgress",
    "SessionClosedError",
]
