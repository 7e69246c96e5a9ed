"""TLS context construction.

The default context only negotiates TLS 1.2 or newer. Callers that need
client certificates or a private CA build their own context and hand it to
the client.
"""

from __future__ import annotations

import logging
import ssl

logger = logging.getLogger(__name__)


def create_tls_context(
    verify: bool = True,
    ca_bundle: str | None = None,
) -> ssl.SSLContext:
    """Create an SSL context restricted to TLS 1.2+.

    Args:
        verify: Verify server certificates and hostnames.
        ca_bundle: Optional PEM file of trusted CAs, replaces the system store.

    Raises:
        ssl.SSLError / OSError: If the context cannot be created or the CA
            bundle cannot be loaded.
    """
    if ca_bundle:
        context = ssl.create_default_context(cafile=ca_bundle)
    else:
        context = ssl.create_default_context()
    context.minimum_version = ssl.TLSVersion.TLSv1_2

    if not verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

    return context


def try_create_tls_context(
    verify: bool = True,
    ca_bundle: str | None = None,
) -> ssl.SSLContext | None:
    """Like create_tls_context, but returns None on failure.

    A missing context only matters once an https URL is requested; the
    client raises SecurityConfigurationError at that point.
    """
    try:
        return create_tls_context(verify=verify, ca_bundle=ca_bundle)
    except (ssl.SSLError, OSError, ValueError) as e:
        logger.warning("failed to initialize TLS context: %s", e)
        return None
