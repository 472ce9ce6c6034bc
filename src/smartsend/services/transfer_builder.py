"""Transfer request validation and unsigned operation building.

Validation is pure and never touches the network. Only a validated request
is encoded into an ERC-20 transfer call and handed to the relay.
"""

import logging

from smartsend.config import TOKEN_DECIMALS
from smartsend.errors import BuildFailed, ValidationError
from smartsend.models import (
    ContractCall,
    OrderMetadata,
    SignMode,
    SmartAccount,
    TransferRequest,
    UnsignedOperation,
)
from smartsend.relay.base import Relay, RelayError
from smartsend.units import is_valid_address, to_minor_units

logger = logging.getLogger(__name__)

# transfer(address,uint256)
ERC20_TRANSFER_SELECTOR = "a9059cbb"


def validate_transfer(recipient_address: str, amount_major_units: str, decimals: int = TOKEN_DECIMALS) -> int:
    """Validate transfer input.

    Returns:
        Amount in minor units (> 0)

    Raises:
        ValidationError: Malformed address or non-positive/unrepresentable amount
    """
    if not recipient_address or not amount_major_units:
        raise ValidationError("Recipient and amount are required")

    if not is_valid_address(recipient_address):
        raise ValidationError(f"Invalid recipient address: {recipient_address!r}")

    try:
        amount = to_minor_units(amount_major_units, decimals)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    if amount <= 0:
        raise ValidationError(f"Amount must be positive: {amount_major_units!r}")

    return amount


def is_valid_transfer(recipient_address: str, amount_major_units: str) -> bool:
    """True iff the address is well-formed and the amount is a positive minor-unit integer."""
    try:
        validate_transfer(recipient_address, amount_major_units)
    except ValidationError:
        return False
    return True


def encode_transfer_call(recipient_address: str, amount: int) -> bytes:
    """ABI-encode transfer(to, amount)."""
    to_padded = recipient_address.lower().replace("0x", "").zfill(64)
    amount_hex = hex(amount)[2:].zfill(64)
    return bytes.fromhex(f"{ERC20_TRANSFER_SELECTOR}{to_padded}{amount_hex}")


class TransferRequestBuilder:
    """Turns a validated TransferRequest into an UnsignedOperation via the relay."""

    def __init__(self, relay: Relay, network_id: int, token_contract: str):
        self.relay = relay
        self.network_id = network_id
        self.token_contract = token_contract

    async def build(self, request: TransferRequest, smart_account: SmartAccount) -> UnsignedOperation:
        """Build the unsigned operation for a transfer.

        Args:
            request: User input
            smart_account: Account the transfer is sent from

        Returns:
            UnsignedOperation with the digest to sign

        Raises:
            ValidationError: Request does not validate (no relay call made)
            BuildFailed: Relay rejected the build
        """
        amount = validate_transfer(request.recipient_address, request.amount_major_units)

        call = ContractCall(
            target_contract=self.token_contract,
            call_data=encode_transfer_call(request.recipient_address, amount),
            value=0,
        )
        order = OrderMetadata(amount=amount, type="AMOUNT_OUT")

        logger.info(
            f"Building transfer of {request.amount_major_units} ({amount} minor units) "
            f"to {request.recipient_address} on network {self.network_id}"
        )

        try:
            built = await self.relay.build_operation(
                [call],
                self.network_id,
                smart_account.smart_account_address,
                order,
                SignMode.ECDSA,
            )
        except RelayError as e:
            logger.error(f"Relay rejected build: {e}")
            raise BuildFailed(f"Failed to build operation: {e}", cause=e) from e
        except Exception as e:
            logger.error(f"Unexpected error building operation: {e}")
            raise BuildFailed(f"Failed to build operation: {e}", cause=e) from e

        if not built.digest_to_sign:
            raise BuildFailed("Relay returned an empty digest")

        return UnsignedOperation(
            call_data=call.call_data,
            target_contract=self.token_contract,
            network_id=self.network_id,
            order_metadata=order,
            digest_to_sign=built.digest_to_sign,
            operation_envelope=built.operation_envelope,
        )
