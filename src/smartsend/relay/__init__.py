"""Account-abstraction relays.

- EnclaveRelay: Enclave REST API
- DryRunRelay: In-memory simulation for dev/test
"""

from smartsend.relay.base import BuiltOperation, Relay, RelayError
from smartsend.relay.dryrun import DryRunRelay
from smartsend.relay.enclave import EnclaveRelay

__all__ = [
    "BuiltOperation",
    "Relay",
    "RelayError",
    "DryRunRelay",
    "EnclaveRelay",
]
