"""Transfer pipeline services."""

from smartsend.services.balance_poller import BalancePoller
from smartsend.services.identity import IdentityResolver
from smartsend.services.provisioning import AccountProvisioner
from smartsend.services.signer import RemoteSigner
from smartsend.services.submission import SubmissionTracker
from smartsend.services.transfer_builder import (
    TransferRequestBuilder,
    is_valid_transfer,
    validate_transfer,
)

__all__ = [
    "AccountProvisioner",
    "BalancePoller",
    "IdentityResolver",
    "RemoteSigner",
    "SubmissionTracker",
    "TransferRequestBuilder",
    "is_valid_transfer",
    "validate_transfer",
]
