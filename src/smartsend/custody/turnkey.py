"""Turnkey key-management provider.

Talks to the Turnkey public API over httpx. Requests are authenticated by
the stamper handed over from the sign-in flow; the custodial key itself
never leaves Turnkey - signing happens remotely over a digest.

Reference:
- https://docs.turnkey.com/api-reference
"""

import json
import logging
import time
from typing import Any, Optional

import httpx
from eth_utils import keccak
from pydantic import BaseModel, ValidationError

from smartsend.custody.base import (
    ActivityNotCompletedError,
    CurrentUser,
    KeyProvider,
    KeyProviderError,
    NotAuthenticatedError,
    SignerBinding,
    Wallet,
    WalletAccount,
)
from smartsend.custody.contracts import (
    ActivityResponse,
    ListWalletAccountsResponse,
    ListWalletsResponse,
    WhoamiResponse,
)
from smartsend.custody.stamper import ApiKeyStamper

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.turnkey.com"

WHOAMI_PATH = "/public/v1/query/whoami"
LIST_WALLETS_PATH = "/public/v1/query/list_wallets"
LIST_WALLET_ACCOUNTS_PATH = "/public/v1/query/list_wallet_accounts"
SIGN_RAW_PAYLOAD_PATH = "/public/v1/submit/sign_raw_payload"

ACTIVITY_SIGN_RAW_PAYLOAD = "ACTIVITY_TYPE_SIGN_RAW_PAYLOAD_V2"
ACTIVITY_STATUS_COMPLETED = "ACTIVITY_STATUS_COMPLETED"


def eip191_hash(message: bytes) -> bytes:
    """Hash a message the way personal_sign does."""
    prefix = b"\x19Ethereum Signed Message:\n" + str(len(message)).encode("ascii")
    return keccak(prefix + message)


class TurnkeyClient(KeyProvider):
    """Turnkey API client.

    Supports:
    - whoami / list_wallets / list_wallet_accounts queries
    - sign_raw_payload activities (EIP-191 digest, no-op hash function)
    """

    def __init__(
        self,
        stamper: ApiKeyStamper,
        organization_id: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize client.

        Args:
            stamper: Request stamper of the authenticated session
            organization_id: Organization to query whoami against
            api_url: Turnkey API base URL
            timeout: HTTP timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self.stamper = stamper
        self.organization_id = organization_id
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return "turnkey"

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST a stamped JSON body and return the decoded response."""
        body = json.dumps(payload, separators=(",", ":"))
        headers = {"Content-Type": "application/json", **self.stamper.stamp(body)}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(f"{self.api_url}{path}", content=body, headers=headers)
        except httpx.HTTPError as e:
            raise KeyProviderError(f"Turnkey request to {path} failed: {e}") from e

        if response.status_code in (401, 403):
            raise NotAuthenticatedError(f"Turnkey rejected credentials ({response.status_code})")
        if response.status_code >= 400:
            raise KeyProviderError(f"Turnkey HTTP {response.status_code}: {response.text[:200]}")

        try:
            return response.json()
        except ValueError as e:
            raise KeyProviderError(f"Turnkey returned invalid JSON for {path}") from e

    @staticmethod
    def _parse(model: type[BaseModel], data: dict[str, Any]):
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise KeyProviderError(f"Malformed Turnkey response: {e.error_count()} invalid field(s)") from e

    async def get_current_user(self) -> Optional[CurrentUser]:
        try:
            data = await self._post(WHOAMI_PATH, {"organizationId": self.organization_id})
        except NotAuthenticatedError as e:
            logger.warning(f"No authenticated Turnkey session: {e}")
            return None

        whoami = self._parse(WhoamiResponse, data)
        return CurrentUser(
            user_id=whoami.user_id,
            organization_id=whoami.organization_id,
            username=whoami.username,
        )

    async def get_wallets(self, organization_id: str) -> list[Wallet]:
        data = await self._post(LIST_WALLETS_PATH, {"organizationId": organization_id})
        parsed = self._parse(ListWalletsResponse, data)
        return [Wallet(wallet_id=w.wallet_id, wallet_name=w.wallet_name) for w in parsed.wallets]

    async def get_wallet_accounts(self, organization_id: str, wallet_id: str) -> list[WalletAccount]:
        data = await self._post(
            LIST_WALLET_ACCOUNTS_PATH,
            {"organizationId": organization_id, "walletId": wallet_id},
        )
        parsed = self._parse(ListWalletAccountsResponse, data)
        return [
            WalletAccount(address=a.address, wallet_id=a.wallet_id or wallet_id, path=a.path)
            for a in parsed.accounts
        ]

    async def sign_message(self, binding: SignerBinding, digest: bytes) -> bytes:
        """Sign digest remotely via sign_raw_payload."""
        message_hash = eip191_hash(digest)
        payload = {
            "type": ACTIVITY_SIGN_RAW_PAYLOAD,
            "timestampMs": str(int(time.time() * 1000)),
            "organizationId": binding.organization_id,
            "parameters": {
                "signWith": binding.sign_with,
                "payload": message_hash.hex(),
                "encoding": "PAYLOAD_ENCODING_HEXADECIMAL",
                "hashFunction": "HASH_FUNCTION_NO_OP",
            },
        }

        data = await self._post(SIGN_RAW_PAYLOAD_PATH, payload)
        activity = self._parse(ActivityResponse, data).activity

        if activity.status != ACTIVITY_STATUS_COMPLETED:
            # Policy denial or consensus still pending
            raise ActivityNotCompletedError(
                f"Signing activity {activity.id or '?'} ended with {activity.status}",
                status=activity.status,
            )

        result = activity.result.sign_raw_payload_result if activity.result else None
        if result is None:
            raise KeyProviderError(f"Signing activity {activity.id or '?'} returned no signature")

        return self._assemble_signature(result.r, result.s, result.v)

    @staticmethod
    def _assemble_signature(r: str, s: str, v: str) -> bytes:
        """Combine r/s/v hex parts into a 65-byte signature with v in {27, 28}."""
        try:
            r_bytes = bytes.fromhex(r.replace("0x", "").zfill(64))
            s_bytes = bytes.fromhex(s.replace("0x", "").zfill(64))
            v_int = int(v, 16)
        except ValueError as e:
            raise KeyProviderError(f"Malformed signature components: {e}") from e

        if len(r_bytes) != 32 or len(s_bytes) != 32:
            raise KeyProviderError("Malformed signature components: wrong length")

        if v_int < 27:
            v_int += 27
        return r_bytes + s_bytes + bytes([v_int])
