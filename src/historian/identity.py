"""Caller identity bound to the current execution context.

The API layer binds a ``Requester`` for the lifetime of a request with
``with_requester``; code further down the call chain reads it back with
``get_requester`` without having it threaded through every signature.
"""

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass

from src.historian.errors import Unauthenticated


@dataclass(frozen=True)
class Requester:
    """The authenticated caller of a request."""

    org_id: int
    user_id: str = ""
    login: str = ""


_requester: ContextVar[Requester | None] = ContextVar("requester", default=None)


@contextmanager
def with_requester(requester: Requester | None) -> Iterator[None]:
    """Bind ``requester`` to the current context for the duration of the block."""
    token = _requester.set(requester)
    try:
        yield
    finally:
        _requester.reset(token)


def get_requester() -> Requester:
    """Return the bound requester, or raise ``Unauthenticated`` if there is none."""
    requester = _requester.get()
    if requester is None:
        raise Unauthenticated()
    return requester


def authorize() -> Requester:
    """Gate a request on the presence of a caller identity.

    There is no role or permission check here; anything beyond "is there a
    caller" is left to the historian engine.
    """
    return get_requester()


def requester_from_headers(
    headers: Mapping[str, str],
    org_id_header: str,
    user_id_header: str,
    login_header: str,
) -> Requester | None:
    """Build a requester from proxy-supplied headers.

    Returns ``None`` when the org header is missing or not an integer, which
    leaves the request unauthenticated.
    """
    lowered = {k.lower(): v for k, v in headers.items()}
    raw_org = lowered.get(org_id_header.lower(), "").strip()
    if not raw_org:
        return None
    try:
        org_id = int(raw_org)
    except ValueError:
        return None
    return Requester(
        org_id=org_id,
        user_id=lowered.get(user_id_header.lower(), ""),
        login=lowered.get(login_header.lower(), ""),
    )
