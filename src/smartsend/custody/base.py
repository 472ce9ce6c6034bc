"""Base interfaces for the key-management provider.

Signing flow:
1. Relay builds the operation and hands back a digest
2. Digest is sent to the provider with a signer binding (org + address)
3. Provider returns a signature (no private key ever leaves custody)
4. Signature is submitted with the operation
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrentUser:
    """Authenticated user as seen by the provider."""
    user_id: str
    organization_id: Optional[str]
    username: str = ""


@dataclass(frozen=True)
class Wallet:
    wallet_id: str
    wallet_name: str = ""


@dataclass(frozen=True)
class WalletAccount:
    address: str
    wallet_id: str = ""
    path: str = ""


@dataclass(frozen=True)
class SignerBinding:
    """Which custodial key signs.

    Attributes:
        organization_id: Organization owning the key
        sign_with: Custodial address the provider signs with
    """
    organization_id: str
    sign_with: str


class KeyProvider(ABC):
    """Abstract base class for key-management providers.

    Implementations NEVER return private keys, only addresses and signatures.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name."""
        raise NotImplementedError()

    @abstractmethod
    async def get_current_user(self) -> Optional[CurrentUser]:
        """Get the authenticated user.

        Returns:
            CurrentUser, or None if there is no authenticated session
        """
        raise NotImplementedError()

    @abstractmethod
    async def get_wallets(self, organization_id: str) -> list[Wallet]:
        """List wallets of an organization."""
        raise NotImplementedError()

    @abstractmethod
    async def get_wallet_accounts(self, organization_id: str, wallet_id: str) -> list[WalletAccount]:
        """List accounts (addresses) of a wallet."""
        raise NotImplementedError()

    @abstractmethod
    async def sign_message(self, binding: SignerBinding, digest: bytes) -> bytes:
        """Sign a digest as an EIP-191 personal message.

        Args:
            binding: Key to sign with
            digest: Raw bytes to sign

        Returns:
            65-byte signature (r || s || v, v in {27, 28})

        Raises:
            KeyProviderError: If the provider rejects the request
        """
        raise NotImplementedError()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name})"


class KeyProviderError(Exception):
    """Exception raised when the key-management provider fails."""
    pass


class NotAuthenticatedError(KeyProviderError):
    """Exception raised when there is no authenticated session."""
    pass


class ActivityNotCompletedError(KeyProviderError):
    """Exception raised when a signing activity is denied or left pending."""

    def __init__(self, message: str, status: str = ""):
        self.status = status
        super().__init__(message)
