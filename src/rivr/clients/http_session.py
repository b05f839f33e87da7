"""requests.Session configuration shared by the rivr API clients."""
from __future__ import annotations

from typing import Callable, Iterable, Mapping, ParamSpec, TypeVar

import requests
from requests.adapters import HTTPAdapter, Retry

P = ParamSpec("P")
R = TypeVar("R")


def configure_session(
    session: requests.Session,
    *,
    headers: Mapping[str, str] | None,
    timeout_seconds: float,
    retries: int = 0,
    retry_backoff_seconds: float = 0.0,
    status_forcelist: Iterable[int] = (429, 502, 503, 504),
) -> requests.Session:
    """
    Apply headers, a default timeout and (optionally) transport retries to ``session``.

    With ``retries=0`` the adapter never retries; any retry is left to the caller.
    """
    if headers:
        session.headers.update(headers)

    if retries > 0:
        adapter = HTTPAdapter(
            max_retries=Retry(
                total=retries,
                connect=retries,
                read=retries,
                backoff_factor=retry_backoff_seconds,
                status_forcelist=frozenset(status_forcelist),
                allowed_methods=frozenset({"GET"}),
                raise_on_status=False,
            )
        )
    else:
        adapter = HTTPAdapter(max_retries=0)

    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.request = _with_default_timeout(session.request, timeout_seconds)  # type: ignore[assignment]
    return session


def _with_default_timeout(fn: Callable[P, R], timeout_seconds: float) -> Callable[P, R]:
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        kwargs.setdefault("timeout", timeout_seconds)
        return fn(*args, **kwargs)

    return wrapper
