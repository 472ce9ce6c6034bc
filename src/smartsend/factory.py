"""Collaborator factory.

Creates the key provider and relay based on configuration:
- DRY_RUN=true (default): simulated custody and relay, no network access
- DRY_RUN=false: Turnkey + Enclave over HTTP
"""

import logging
from typing import Optional

from smartsend.config import get_settings
from smartsend.custody.base import KeyProvider
from smartsend.relay.base import Relay

logger = logging.getLogger(__name__)

_key_provider_instance: Optional[KeyProvider] = None
_relay_instance: Optional[Relay] = None


def get_key_provider() -> Optional[KeyProvider]:
    """Get the configured key provider.

    Returns:
        KeyProvider instance, or None when no API key is configured
        (treated as not authenticated)
    """
    global _key_provider_instance

    if _key_provider_instance is not None:
        return _key_provider_instance

    settings = get_settings()

    if settings.dry_run:
        from smartsend.custody.dryrun import DryRunKeyProvider
        _key_provider_instance = DryRunKeyProvider()

    elif settings.has_api_key:
        from smartsend.custody.stamper import ApiKeyStamper
        from smartsend.custody.turnkey import TurnkeyClient
        _key_provider_instance = TurnkeyClient(
            stamper=ApiKeyStamper(settings.turnkey_api_public_key, settings.turnkey_api_private_key),
            organization_id=settings.turnkey_organization_id,
            api_url=settings.turnkey_api_url,
            timeout=settings.http_timeout,
        )

    else:
        logger.warning("TURNKEY_API_PUBLIC_KEY/TURNKEY_API_PRIVATE_KEY not set - not authenticated")
        return None

    logger.info(f"Initializing {_key_provider_instance.name} key provider")
    return _key_provider_instance


def get_relay() -> Relay:
    """Get the configured relay instance."""
    global _relay_instance

    if _relay_instance is not None:
        return _relay_instance

    settings = get_settings()

    if settings.dry_run:
        from smartsend.relay.dryrun import DryRunRelay
        _relay_instance = DryRunRelay(network_id=settings.network_id)
    else:
        from smartsend.relay.enclave import EnclaveRelay
        if not settings.enclave_api_key:
            logger.warning("ENCLAVE_API_KEY not set - relay requests will be rejected")
        _relay_instance = EnclaveRelay(
            api_key=settings.enclave_api_key,
            api_url=settings.enclave_api_url,
            timeout=settings.http_timeout,
        )

    logger.info(f"Initializing {_relay_instance.name} relay")
    return _relay_instance


def reset_factories() -> None:
    """Reset collaborator instances (for testing)."""
    global _key_provider_instance, _relay_instance
    _key_provider_instance = None
    _relay_instance = None
    get_settings.cache_clear()
