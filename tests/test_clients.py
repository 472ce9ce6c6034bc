"""Tests for the Turnkey and Enclave HTTP clients."""

import base64
import json

import httpx
import pytest
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from eth_account import Account
from eth_account.messages import encode_defunct

from smartsend.custody.base import ActivityNotCompletedError, KeyProviderError, SignerBinding
from smartsend.custody.stamper import STAMP_HEADER, ApiKeyStamper
from smartsend.custody.turnkey import (
    LIST_WALLET_ACCOUNTS_PATH,
    LIST_WALLETS_PATH,
    SIGN_RAW_PAYLOAD_PATH,
    WHOAMI_PATH,
    TurnkeyClient,
    eip191_hash,
)
from smartsend.models import ContractCall, OrderMetadata, SignMode
from smartsend.relay.base import RelayError
from smartsend.relay.enclave import BALANCE_PATH, BUILD_PATH, CREATE_ACCOUNT_PATH, SUBMIT_PATH, EnclaveRelay
from smartsend.services.signer import recover_signer

USDC_BASE = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
SMART_ACCOUNT = "0x" + "0" * 37 + "5c1"
DIGEST = bytes.fromhex("ab" * 32)


def make_api_key():
    """Generate a throwaway P-256 API key pair as (public hex, private hex)."""
    private_key = ec.generate_private_key(ec.SECP256R1())
    public_hex = private_key.public_key().public_bytes(
        serialization.Encoding.X962,
        serialization.PublicFormat.CompressedPoint,
    ).hex()
    private_hex = format(private_key.private_numbers().private_value, "064x")
    return public_hex, private_hex


def decode_stamp(header: str) -> dict:
    padded = header + "=" * (-len(header) % 4)
    return json.loads(base64.urlsafe_b64decode(padded))


def make_turnkey(handler) -> TurnkeyClient:
    public_hex, private_hex = make_api_key()
    return TurnkeyClient(
        stamper=ApiKeyStamper(public_hex, private_hex),
        organization_id="org-1",
        api_url="https://turnkey.test",
        transport=httpx.MockTransport(handler),
    )


def make_enclave(handler) -> EnclaveRelay:
    return EnclaveRelay(
        api_key="enclave-key",
        api_url="https://enclave.test",
        transport=httpx.MockTransport(handler),
    )


class TestApiKeyStamper:
    """Tests for ApiKeyStamper."""

    def test_stamp_verifies_against_public_key(self):
        public_hex, private_hex = make_api_key()
        stamper = ApiKeyStamper(public_hex, private_hex)
        body = '{"organizationId":"org-1"}'

        stamp = decode_stamp(stamper.stamp(body)[STAMP_HEADER])

        assert stamp["publicKey"] == public_hex
        assert stamp["scheme"] == "SIGNATURE_SCHEME_TK_API_P256"
        public_key = ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256R1(), bytes.fromhex(public_hex))
        public_key.verify(bytes.fromhex(stamp["signature"]), body.encode(), ec.ECDSA(hashes.SHA256()))

    def test_stamp_does_not_cover_other_body(self):
        public_hex, private_hex = make_api_key()
        stamp = decode_stamp(ApiKeyStamper(public_hex, private_hex).stamp("a")[STAMP_HEADER])
        public_key = ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256R1(), bytes.fromhex(public_hex))

        with pytest.raises(InvalidSignature):
            public_key.verify(bytes.fromhex(stamp["signature"]), b"b", ec.ECDSA(hashes.SHA256()))

    def test_mismatched_key_pair_rejected(self):
        public_hex, _ = make_api_key()
        _, other_private = make_api_key()

        with pytest.raises(ValueError, match="does not match"):
            ApiKeyStamper(public_hex, other_private)


class TestTurnkeyClient:
    """Tests for TurnkeyClient against a mock transport."""

    @pytest.mark.asyncio
    async def test_identity_queries(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            assert STAMP_HEADER in request.headers
            body = json.loads(request.content)
            if request.url.path == WHOAMI_PATH:
                return httpx.Response(200, json={
                    "organizationId": "org-1", "organizationName": "Acme",
                    "userId": "user-1", "username": "alice",
                })
            if request.url.path == LIST_WALLETS_PATH:
                assert body == {"organizationId": "org-1"}
                return httpx.Response(200, json={"wallets": [
                    {"walletId": "w1", "walletName": "Default"}, {"walletId": "w2"},
                ]})
            if request.url.path == LIST_WALLET_ACCOUNTS_PATH:
                assert body == {"organizationId": "org-1", "walletId": "w1"}
                return httpx.Response(200, json={"accounts": [
                    {"address": "0x" + "ab" * 20, "path": "m/44'/60'/0'/0/0", "curve": "CURVE_SECP256K1"},
                ]})
            return httpx.Response(404)

        client = make_turnkey(handler)

        user = await client.get_current_user()
        wallets = await client.get_wallets(user.organization_id)
        accounts = await client.get_wallet_accounts("org-1", wallets[0].wallet_id)

        assert user.user_id == "user-1"
        assert user.organization_id == "org-1"
        assert [w.wallet_id for w in wallets] == ["w1", "w2"]
        assert accounts[0].address == "0x" + "ab" * 20
        assert accounts[0].wallet_id == "w1"
        assert seen == [WHOAMI_PATH, LIST_WALLETS_PATH, LIST_WALLET_ACCOUNTS_PATH]

    @pytest.mark.asyncio
    async def test_unauthenticated_whoami_returns_none(self):
        client = make_turnkey(lambda request: httpx.Response(401, json={"message": "expired"}))

        assert await client.get_current_user() is None

    @pytest.mark.asyncio
    async def test_unauthenticated_listing_raises(self):
        client = make_turnkey(lambda request: httpx.Response(403))

        with pytest.raises(KeyProviderError):
            await client.get_wallets("org-1")

    @pytest.mark.asyncio
    async def test_server_error_raises(self):
        client = make_turnkey(lambda request: httpx.Response(500, text="internal"))

        with pytest.raises(KeyProviderError, match="500"):
            await client.get_wallets("org-1")

    @pytest.mark.asyncio
    async def test_malformed_whoami_raises(self):
        client = make_turnkey(lambda request: httpx.Response(200, json={"organizationId": "org-1"}))

        with pytest.raises(KeyProviderError, match="Malformed"):
            await client.get_current_user()

    @pytest.mark.asyncio
    async def test_sign_message_returns_recoverable_signature(self):
        owner = Account.create()
        expected = owner.sign_message(encode_defunct(primitive=DIGEST))
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            requests.append(body)
            return httpx.Response(200, json={"activity": {
                "id": "act-1",
                "status": "ACTIVITY_STATUS_COMPLETED",
                "result": {"signRawPayloadResult": {
                    "r": format(expected.r, "064x"),
                    "s": format(expected.s, "064x"),
                    "v": format(expected.v - 27, "02x"),
                }},
            }})

        client = make_turnkey(handler)
        signature = await client.sign_message(SignerBinding("org-1", owner.address), DIGEST)

        assert len(signature) == 65
        assert signature[-1] in (27, 28)
        assert recover_signer(DIGEST, signature) == owner.address

        body = requests[0]
        assert body["organizationId"] == "org-1"
        assert body["parameters"]["signWith"] == owner.address
        assert body["parameters"]["payload"] == eip191_hash(DIGEST).hex()
        assert body["parameters"]["hashFunction"] == "HASH_FUNCTION_NO_OP"

    @pytest.mark.asyncio
    async def test_pending_activity_raises(self):
        client = make_turnkey(lambda request: httpx.Response(200, json={"activity": {
            "id": "act-2", "status": "ACTIVITY_STATUS_CONSENSUS_NEEDED",
        }}))

        with pytest.raises(ActivityNotCompletedError) as exc_info:
            await client.sign_message(SignerBinding("org-1", "0x" + "ab" * 20), DIGEST)

        assert exc_info.value.status == "ACTIVITY_STATUS_CONSENSUS_NEEDED"

    @pytest.mark.asyncio
    async def test_completed_activity_without_result_raises(self):
        client = make_turnkey(lambda request: httpx.Response(200, json={"activity": {
            "id": "act-3", "status": "ACTIVITY_STATUS_COMPLETED", "result": {},
        }}))

        with pytest.raises(KeyProviderError, match="no signature"):
            await client.sign_message(SignerBinding("org-1", "0x" + "ab" * 20), DIGEST)

    def test_assemble_signature_rejects_garbage(self):
        with pytest.raises(KeyProviderError):
            TurnkeyClient._assemble_signature("zz", "00", "00")


class TestEnclaveRelay:
    """Tests for EnclaveRelay against a mock transport."""

    @pytest.mark.asyncio
    async def test_create_smart_account(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "POST"
            assert request.url.path == CREATE_ACCOUNT_PATH
            assert request.headers["Authorization"] == "enclave-key"
            assert json.loads(request.content) == {"eoaAddress": "0x" + "ab" * 20}
            return httpx.Response(200, json={"wallet": {"scw_address": SMART_ACCOUNT, "multi_scw": []}})

        address = await make_enclave(handler).create_smart_account("0x" + "ab" * 20)

        assert address == SMART_ACCOUNT

    @pytest.mark.asyncio
    async def test_get_balance(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "GET"
            assert request.url.path == BALANCE_PATH
            assert request.url.params["walletAddress"] == SMART_ACCOUNT
            return httpx.Response(200, json={"balance": 12_345_678})

        assert await make_enclave(handler).get_balance(SMART_ACCOUNT) == 12_345_678

    @pytest.mark.asyncio
    async def test_negative_balance_is_malformed(self):
        relay = make_enclave(lambda request: httpx.Response(200, json={"balance": -1}))

        with pytest.raises(RelayError, match="Malformed"):
            await relay.get_balance(SMART_ACCOUNT)

    @pytest.mark.asyncio
    async def test_build_operation_payload(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == BUILD_PATH
            captured.update(json.loads(request.content))
            return httpx.Response(200, json={"messageToSign": "0x" + DIGEST.hex(), "userOp": {"nonce": "0x1"}})

        call = ContractCall(target_contract=USDC_BASE, call_data=bytes.fromhex("a9059cbb"))
        built = await make_enclave(handler).build_operation(
            [call], 8453, SMART_ACCOUNT, OrderMetadata(amount=10_500_000), SignMode.ECDSA
        )

        assert built.digest_to_sign == DIGEST
        assert built.operation_envelope == {"nonce": "0x1"}
        assert captured == {
            "transactionDetails": [
                {"encodedData": "0xa9059cbb", "targetContractAddress": USDC_BASE, "value": 0},
            ],
            "network": 8453,
            "walletAddress": SMART_ACCOUNT,
            "orderData": {"amount": "10500000", "type": "AMOUNT_OUT"},
            "signMode": "ECDSA",
        }

    @pytest.mark.asyncio
    async def test_build_rejection_carries_status(self):
        relay = make_enclave(lambda request: httpx.Response(400, json={"error": "Insufficient balance"}))

        with pytest.raises(RelayError) as exc_info:
            await relay.build_operation(
                [ContractCall(USDC_BASE, b"")], 8453, SMART_ACCOUNT, OrderMetadata(amount=1)
            )

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_build_non_hex_digest_is_malformed(self):
        relay = make_enclave(
            lambda request: httpx.Response(200, json={"messageToSign": "0xnothex", "userOp": {}})
        )

        with pytest.raises(RelayError, match="not hex"):
            await relay.build_operation(
                [ContractCall(USDC_BASE, b"")], 8453, SMART_ACCOUNT, OrderMetadata(amount=1)
            )

    @pytest.mark.asyncio
    async def test_submit_operation(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == SUBMIT_PATH
            captured.update(json.loads(request.content))
            return httpx.Response(200, json={"txnHash": "0x" + "cd" * 32, "blockHash": "0x0"})

        tx_hash = await make_enclave(handler).submit_operation(
            b"\x01" * 65, {"nonce": "0x1"}, 8453, SMART_ACCOUNT
        )

        assert tx_hash == "0x" + "cd" * 32
        assert captured["signature"] == "0x" + "01" * 65
        assert captured["userOp"] == {"nonce": "0x1"}
        assert captured["signMode"] == "ECDSA"

    @pytest.mark.asyncio
    async def test_server_error_raises(self):
        relay = make_enclave(lambda request: httpx.Response(500, text="bundler down"))

        with pytest.raises(RelayError, match="500"):
            await relay.submit_operation(b"\x01" * 65, {}, 8453, SMART_ACCOUNT)

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self):
        relay = make_enclave(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(RelayError, match="invalid JSON"):
            await relay.get_balance(SMART_ACCOUNT)
