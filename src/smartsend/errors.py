"""Transfer flow error taxonomy.

Every error carries a machine code and a short message safe to show the user.
None of them is fatal to the process: each is either recoverable by user
action or requires leaving the flow (re-authentication).
"""

from typing import Optional


class TransferError(Exception):
    """Base exception for the transfer flow."""

    code = "transfer_error"
    user_message = "Something went wrong. Please try again."

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class IdentityUnavailable(TransferError):
    """No session, organization, wallet or account. Re-authenticate."""

    code = "identity_unavailable"
    user_message = "Your session has expired. Please sign in again."


class ProvisioningFailed(TransferError):
    """Smart account could not be created or fetched. Safe to retry manually."""

    code = "provisioning_failed"
    user_message = "Failed to create or fetch smart account. Please try again later."


class ValidationError(TransferError):
    """Client-side input error. Never sent to a collaborator."""

    code = "validation_error"
    user_message = "Enter a valid recipient address and a positive amount."


class BuildFailed(TransferError):
    code = "build_failed"
    user_message = "Failed to prepare the transfer. Please try again."


class SigningFailed(TransferError):
    code = "signing_failed"
    user_message = "The transfer could not be signed. Please try again."


class SubmissionFailed(TransferError):
    code = "submission_failed"
    user_message = "Failed to process transfer. Please try again."


class PollFailed(TransferError):
    """Soft error: a single balance refresh failed."""

    code = "poll_failed"
    user_message = "Balance may be out of date."


class AccountNotReady(TransferError):
    """Transfer attempted before a smart account exists."""

    code = "account_not_ready"
    user_message = "Smart account is not available yet."


class TransferInProgress(TransferError):
    code = "transfer_in_progress"
    user_message = "A transfer is already being processed."


class SessionClosedError(TransferError):
    """Session was torn down; start a new one."""

    code = "session_closed"
    user_message = "This session has ended. Please start again."
