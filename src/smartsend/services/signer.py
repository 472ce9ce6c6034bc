"""Remote signing of unsigned operations.

Only the digest travels to the custody service; a signature comes back and
is checked against the custodial address before it is trusted.
"""

import logging

from eth_account import Account
from eth_account.messages import encode_defunct

from smartsend.custody.base import KeyProvider, KeyProviderError, SignerBinding
from smartsend.errors import SigningFailed
from smartsend.models import SignedOperation, UnsignedOperation, WalletIdentity

logger = logging.getLogger(__name__)


def recover_signer(digest: bytes, signature: bytes) -> str:
    """Recover the address that personal-signed a digest."""
    return Account.recover_message(encode_defunct(primitive=digest), signature=signature)


class RemoteSigner:
    """Requests signatures from the key-management provider."""

    def __init__(self, key_provider: KeyProvider):
        self.key_provider = key_provider

    async def sign(self, operation: UnsignedOperation, identity: WalletIdentity) -> SignedOperation:
        """Sign an operation's digest with the custodial key.

        Args:
            operation: Operation built by the relay
            identity: Custodial identity that owns the smart account

        Returns:
            SignedOperation with a verified signature

        Raises:
            SigningFailed: Provider rejected the request or the signature
                does not come from the custodial address
        """
        binding = SignerBinding(
            organization_id=identity.organization_id,
            sign_with=identity.custodial_address,
        )
        logger.debug(f"UserOp hash to sign: 0x{operation.digest_to_sign.hex()}")

        try:
            signature = await self.key_provider.sign_message(binding, operation.digest_to_sign)
        except KeyProviderError as e:
            logger.error(f"Custody service rejected signing: {e}")
            raise SigningFailed(f"Signing failed: {e}", cause=e) from e
        except Exception as e:
            logger.error(f"Unexpected error requesting signature: {e}")
            raise SigningFailed(f"Signing failed: {e}", cause=e) from e

        try:
            recovered = recover_signer(operation.digest_to_sign, signature)
        except Exception as e:
            raise SigningFailed(f"Unrecoverable signature: {e}", cause=e) from e

        if recovered.lower() != identity.custodial_address.lower():
            raise SigningFailed(
                f"Signature recovered to {recovered}, expected {identity.custodial_address}"
            )

        logger.info(f"Operation signed by {recovered}")
        return SignedOperation(
            signature=signature,
            operation_envelope=operation.operation_envelope,
            signer_address=recovered,
        )
