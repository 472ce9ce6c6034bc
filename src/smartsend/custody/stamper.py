"""API-key request stamper for Turnkey.

Every Turnkey request carries an X-Stamp header: a base64url JSON document
holding the API public key and a P-256 ECDSA/SHA-256 signature over the exact
request body.
"""

import base64
import json
import logging

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec

logger = logging.getLogger(__name__)

STAMP_HEADER = "X-Stamp"
STAMP_SCHEME = "SIGNATURE_SCHEME_TK_API_P256"


class ApiKeyStamper:
    """Stamps request bodies with a Turnkey API key pair."""

    def __init__(self, public_key: str, private_key: str):
        """Initialize stamper.

        Args:
            public_key: Compressed P-256 public key (hex)
            private_key: P-256 private scalar (hex)

        Raises:
            ValueError: If the private key does not match the public key
        """
        self.public_key = public_key.lower().replace("0x", "")
        self._private_key = ec.derive_private_key(
            int(private_key.replace("0x", ""), 16), ec.SECP256R1()
        )

        derived = self._private_key.public_key().public_bytes(
            serialization.Encoding.X962,
            serialization.PublicFormat.CompressedPoint,
        ).hex()
        if derived != self.public_key:
            raise ValueError("API private key does not match the configured public key")

    def stamp(self, body: str) -> dict[str, str]:
        """Build the stamp header for a request body."""
        signature = self._private_key.sign(body.encode("utf-8"), ec.ECDSA(hashes.SHA256()))
        document = json.dumps(
            {
                "publicKey": self.public_key,
                "scheme": STAMP_SCHEME,
                "signature": signature.hex(),
            },
            separators=(",", ":"),
        )
        encoded = base64.urlsafe_b64encode(document.encode("utf-8")).decode("ascii").rstrip("=")
        return {STAMP_HEADER: encoded}
