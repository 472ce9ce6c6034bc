"""Domain records for the custodial transfer flow.

Pipeline stages hand these to each other in order:
WalletIdentity -> SmartAccount -> UnsignedOperation -> SignedOperation -> TransactionResult
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from smartsend.config import TOKEN_DECIMALS
from smartsend.units import format_units


class TransferState(str, Enum):
    """State of a single transfer attempt."""
    IDLE = "idle"
    VALIDATING = "validating"
    BUILDING = "building"
    AWAITING_SIGNATURE = "awaiting_signature"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TransferState.COMPLETED, TransferState.FAILED)


class TransactionStatus(str, Enum):
    """Status of a submitted operation as reported by the relay."""
    SUBMITTED = "submitted"


class SignMode(str, Enum):
    """Signature scheme the smart account validates."""
    ECDSA = "ECDSA"


@dataclass(frozen=True)
class WalletIdentity:
    """Custodial identity resolved from the key-management provider.

    Attributes:
        organization_id: Provider organization owning the wallet
        custodial_address: Address of the custodial signing key
    """
    organization_id: str
    custodial_address: str


@dataclass(frozen=True)
class SmartAccount:
    """Smart account bound to a custodial owner on one network."""
    owner_address: str
    smart_account_address: str
    network_id: int


@dataclass(frozen=True)
class Balance:
    """Token balance in integer minor units."""
    amount_minor_units: int
    decimals: int = TOKEN_DECIMALS

    @property
    def formatted(self) -> str:
        return format_units(self.amount_minor_units, self.decimals)


@dataclass
class TransferRequest:
    """User-supplied transfer input.

    Attributes:
        recipient_address: Destination account address
        amount_major_units: Amount as typed by the user (e.g. "10.50")
    """
    recipient_address: str
    amount_major_units: str


@dataclass(frozen=True)
class OrderMetadata:
    amount: int
    type: str = "AMOUNT_OUT"

    def to_dict(self) -> dict[str, str]:
        return {"amount": str(self.amount), "type": self.type}


@dataclass(frozen=True)
class ContractCall:
    """One call the smart account should execute."""
    target_contract: str
    call_data: bytes
    value: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "encodedData": "0x" + self.call_data.hex(),
            "targetContractAddress": self.target_contract,
            "value": self.value,
        }


@dataclass(frozen=True)
class UnsignedOperation:
    """Relay-built operation awaiting a signature.

    Attributes:
        call_data: Encoded ERC-20 transfer call
        target_contract: Token contract the call is sent to
        network_id: Chain the operation executes on
        order_metadata: Amount/type hint passed to the relay
        digest_to_sign: Bytes the owner key must sign
        operation_envelope: Opaque user operation returned by the relay
    """
    call_data: bytes
    target_contract: str
    network_id: int
    order_metadata: OrderMetadata
    digest_to_sign: bytes
    operation_envelope: dict[str, Any] = field(hash=False, compare=False)


@dataclass(frozen=True)
class SignedOperation:
    """Operation with a verified owner signature."""
    signature: bytes
    operation_envelope: dict[str, Any] = field(hash=False, compare=False)
    signer_address: str = ""


@dataclass(frozen=True)
class TransactionResult:
    transaction_hash: str
    status: TransactionStatus = TransactionStatus.SUBMITTED


@dataclass
class TransferAttempt:
    """Outcome of one pass through the transfer state machine."""
    request: TransferRequest
    state: TransferState = TransferState.IDLE
    history: list[TransferState] = field(default_factory=list)
    result: Optional[TransactionResult] = None
    error: Optional[Exception] = None
    discarded: bool = False

    def advance(self, state: TransferState) -> None:
        self.state = state
        self.history.append(state)

    @property
    def succeeded(self) -> bool:
        return self.state == TransferState.COMPLETED and self.result is not None


@dataclass
class SessionState:
    """Shared state for one user session.

    Identity and smart account are written once by bootstrap; balance is
    refreshed by the poller only. Input fields mirror the transfer form.
    """
    identity: Optional[WalletIdentity] = None
    smart_account: Optional[SmartAccount] = None
    balance: Optional[Balance] = None

    # Transfer form input
    recipient_address: str = ""
    transfer_amount: str = ""

    # Flags
    is_loading: bool = False
    is_polling: bool = False
    is_transferring: bool = False
    transfer_state: TransferState = TransferState.IDLE

    # Display
    error: Optional[str] = None
    transfer_error: Optional[str] = None
    last_transaction_hash: Optional[str] = None

    @property
    def is_ready(self) -> bool:
        """Transfers are only offered once a smart account exists."""
        return self.identity is not None and self.smart_account is not None

    def clear_input(self) -> None:
        self.recipient_address = ""
        self.transfer_amount = ""
