"""Base interface for the account-abstraction relay.

The relay owns smart accounts: it derives them from an owner address,
reports their token balance, builds user operations for a list of calls and
submits them once signed by the owner.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from smartsend.models import ContractCall, OrderMetadata, SignMode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuiltOperation:
    """Relay output for a build request.

    Attributes:
        digest_to_sign: Bytes the owner must sign (user operation hash)
        operation_envelope: Opaque user operation to send back on submit
    """
    digest_to_sign: bytes
    operation_envelope: dict[str, Any] = field(hash=False, compare=False)


class Relay(ABC):
    """Abstract base class for account-abstraction relays."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Relay name."""
        raise NotImplementedError()

    @abstractmethod
    async def create_smart_account(self, owner_address: str) -> str:
        """Create or fetch the smart account owned by an address.

        Must be idempotent: the same owner always maps to the same account.

        Returns:
            Smart account address
        """
        raise NotImplementedError()

    @abstractmethod
    async def get_balance(self, smart_account_address: str) -> int:
        """Get token balance in minor units."""
        raise NotImplementedError()

    @abstractmethod
    async def build_operation(
        self,
        calls: list[ContractCall],
        network_id: int,
        smart_account_address: str,
        order: OrderMetadata,
        sign_mode: SignMode = SignMode.ECDSA,
    ) -> BuiltOperation:
        """Build an unsigned user operation.

        Raises:
            RelayError: If the relay rejects the request (e.g. insufficient balance)
        """
        raise NotImplementedError()

    @abstractmethod
    async def submit_operation(
        self,
        signature: bytes,
        operation_envelope: dict[str, Any],
        network_id: int,
        smart_account_address: str,
        sign_mode: SignMode = SignMode.ECDSA,
    ) -> str:
        """Submit a signed user operation.

        Returns:
            Transaction hash
        """
        raise NotImplementedError()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name})"


class RelayError(Exception):
    """Exception raised when the relay fails or rejects a request."""

    def __init__(self, message: str, status_code: int = 0):
        self.status_code = status_code
        super().__init__(message)
