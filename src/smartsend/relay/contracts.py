"""Response contracts for the Enclave relay API."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _Response(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class SmartWallet(_Response):
    scw_address: str = Field(..., min_length=1, description="Smart contract wallet address")


class CreateSmartAccountResponse(_Response):
    wallet: SmartWallet


class BalanceResponse(_Response):
    balance: int = Field(..., ge=0, description="Token balance in minor units")


class BuildTransactionResponse(_Response):
    message_to_sign: str = Field(..., alias="messageToSign", min_length=3)
    user_op: dict[str, Any] = Field(..., alias="userOp")


class SubmitTransactionResponse(_Response):
    txn_hash: str = Field(..., alias="txnHash", min_length=1)
