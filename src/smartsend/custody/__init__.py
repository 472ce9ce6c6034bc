"""Key-management providers.

Provides custodial identity and remote signing:
- TurnkeyClient: Turnkey public API (API-key stamped requests)
- DryRunKeyProvider: In-memory key for dev/test
"""

from smartsend.custody.base import (
    CurrentUser,
    KeyProvider,
    KeyProviderError,
    SignerBinding,
    Wallet,
    WalletAccount,
)
from smartsend.custody.dryrun import DryRunKeyProvider
from smartsend.custody.turnkey import TurnkeyClient

__all__ = [
    "CurrentUser",
    "KeyProvider",
    "KeyProviderError",
    "SignerBinding",
    "Wallet",
    "WalletAccount",
    "DryRunKeyProvider",
    "TurnkeyClient",
]
