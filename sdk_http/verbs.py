"""Verb compatibility for connections that refuse non-standard methods.

Some connection implementations only accept a fixed set of methods and raise
UnsupportedVerbError for anything else (PATCH being the usual casualty).
``set_request_verb`` works around that by forcing the method onto the
connection directly. The httpx-backed Connection accepts any verb, so the
fallback only engages for custom connection implementations.

This is a low-level workaround. Nothing else in the package touches a
connection's internals.
"""

from __future__ import annotations

import logging
from typing import Any

from sdk_http.errors import UnsupportedVerbError

logger = logging.getLogger(__name__)

DELEGATE_ATTRIBUTE = "delegate"
METHOD_ATTRIBUTE = "method"


def set_request_verb(connection: Any, verb: str) -> None:
    """Set ``verb`` (upper-cased) as the connection's HTTP method.

    Tries ``connection.set_request_method`` first. On rejection, retries on a
    wrapped ``delegate`` connection if there is one, otherwise overrides the
    ``method`` attribute directly.

    Raises:
        UnsupportedVerbError: The original rejection, if no fallback applies.
    """
    verb = verb.upper()
    try:
        connection.set_request_method(verb)
    except UnsupportedVerbError as rejection:
        delegate = getattr(connection, DELEGATE_ATTRIBUTE, None)
        if delegate is not None:
            logger.debug("method %s rejected, retrying on delegate connection", verb)
            set_request_verb(delegate, verb)
            return
        if not _override_method(connection, verb):
            raise rejection
        logger.debug("method %s rejected, forced onto %s", verb, type(connection).__name__)


def _override_method(connection: Any, verb: str) -> bool:
    """Assign the method attribute, bypassing any __setattr__ guard.

    Looks for the attribute in the instance dict, then walks the type's MRO
    for a ``method`` slot or attribute. Returns False if none is found.
    """
    if METHOD_ATTRIBUTE in getattr(connection, "__dict__", {}):
        object.__setattr__(connection, METHOD_ATTRIBUTE, verb)
        return True

    for cls in type(connection).__mro__:
        slots = cls.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        if METHOD_ATTRIBUTE in slots or METHOD_ATTRIBUTE in cls.__dict__:
            try:
                object.__setattr__(connection, METHOD_ATTRIBUTE, verb)
            except (AttributeError, TypeError):
                continue
            return True

    return False
