"""Response contracts for the Turnkey public API.

Only the fields the transfer flow reads are declared; everything else is
ignored. Missing required fields fail validation at the boundary.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _Response(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class WhoamiResponse(_Response):
    organization_id: Optional[str] = Field(None, alias="organizationId")
    organization_name: str = Field("", alias="organizationName")
    user_id: str = Field(..., alias="userId")
    username: str = Field("", alias="username")


class WalletItem(_Response):
    wallet_id: str = Field(..., alias="walletId")
    wallet_name: str = Field("", alias="walletName")


class ListWalletsResponse(_Response):
    wallets: list[WalletItem] = Field(default_factory=list)


class WalletAccountItem(_Response):
    address: str = Field(..., min_length=1)
    wallet_id: str = Field("", alias="walletId")
    path: str = Field("", alias="path")


class ListWalletAccountsResponse(_Response):
    accounts: list[WalletAccountItem] = Field(default_factory=list)


class SignRawPayloadResult(_Response):
    r: str
    s: str
    v: str


class ActivityResult(_Response):
    sign_raw_payload_result: Optional[SignRawPayloadResult] = Field(
        None, alias="signRawPayloadResult"
    )


class Activity(_Response):
    id: str = ""
    status: str
    result: Optional[ActivityResult] = None


class ActivityResponse(_Response):
    activity: Activity
