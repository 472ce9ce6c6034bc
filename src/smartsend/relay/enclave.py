"""Enclave account-abstraction relay.

REST client over httpx. The relay creates smart accounts for an owner
address, reports balances and builds/submits user operations; it never
sees the owner key, only signatures.
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import BaseModel, ValidationError

from smartsend.models import ContractCall, OrderMetadata, SignMode
from smartsend.relay.base import BuiltOperation, Relay, RelayError
from smartsend.relay.contracts import (
    BalanceResponse,
    BuildTransactionResponse,
    CreateSmartAccountResponse,
    SubmitTransactionResponse,
)

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.enclave.money"

CREATE_ACCOUNT_PATH = "/smart-account/create"
BALANCE_PATH = "/smart-account/balance"
BUILD_PATH = "/v3/transaction/build"
SUBMIT_PATH = "/v3/transaction/submit"


class EnclaveRelay(Relay):
    """Enclave relay client."""

    def __init__(
        self,
        api_key: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return "enclave"

    def _headers(self) -> dict[str, str]:
        return {"Authorization": self.api_key, "Accept": "application/json"}

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, str]] = None,
    ) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(
                    method,
                    f"{self.api_url}{path}",
                    json=json,
                    params=params,
                    headers=self._headers(),
                )
        except httpx.HTTPError as e:
            raise RelayError(f"Enclave request to {path} failed: {e}") from e

        if response.status_code >= 400:
            raise RelayError(
                f"Enclave HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise RelayError(f"Enclave returned invalid JSON for {path}") from e

    @staticmethod
    def _parse(model: type[BaseModel], data: dict[str, Any]):
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise RelayError(f"Malformed Enclave response: {e.error_count()} invalid field(s)") from e

    async def create_smart_account(self, owner_address: str) -> str:
        data = await self._request("POST", CREATE_ACCOUNT_PATH, json={"eoaAddress": owner_address})
        return self._parse(CreateSmartAccountResponse, data).wallet.scw_address

    async def get_balance(self, smart_account_address: str) -> int:
        data = await self._request(
            "GET", BALANCE_PATH, params={"walletAddress": smart_account_address}
        )
        return self._parse(BalanceResponse, data).balance

    async def build_operation(
        self,
        calls: list[ContractCall],
        network_id: int,
        smart_account_address: str,
        order: OrderMetadata,
        sign_mode: SignMode = SignMode.ECDSA,
    ) -> BuiltOperation:
        payload = {
            "transactionDetails": [call.to_dict() for call in calls],
            "network": network_id,
            "walletAddress": smart_account_address,
            "orderData": order.to_dict(),
            "signMode": sign_mode.value,
        }
        data = await self._request("POST", BUILD_PATH, json=payload)
        built = self._parse(BuildTransactionResponse, data)

        try:
            digest = bytes.fromhex(built.message_to_sign.replace("0x", ""))
        except ValueError as e:
            raise RelayError("Malformed Enclave response: messageToSign is not hex") from e

        logger.debug(f"UserOp hash to sign: 0x{digest.hex()}")
        return BuiltOperation(digest_to_sign=digest, operation_envelope=built.user_op)

    async def submit_operation(
        self,
        signature: bytes,
        operation_envelope: dict[str, Any],
        network_id: int,
        smart_account_address: str,
        sign_mode: SignMode = SignMode.ECDSA,
    ) -> str:
        payload = {
            "signature": "0x" + signature.hex(),
            "userOp": operation_envelope,
            "network": network_id,
            "walletAddress": smart_account_address,
            "signMode": sign_mode.value,
        }
        data = await self._request("POST", SUBMIT_PATH, json=payload)
        return self._parse(SubmitTransactionResponse, data).txn_hash
