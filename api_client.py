# api_client.py - minimal HTTP client wrapper around requests for the Dispatch api/1.0 endpoints
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlencode

import requests

from utils.api_formats import to_wire_value
from utils.logger import get_logger

logger = get_logger("dispatch-api")

API_PATH = "/api/1.0/"
FORM_HEADERS = {"Content-Type": "application/x-www-form-urlencoded"}


class SessionContext:
    """Per-run parameters merged into every call (auth token, then the resolved site)."""

    def __init__(self, auth: str, **params):
        self._params = MappingProxyType({"auth": auth, **params})

    @property
    def params(self) -> Mapping[str, Any]:
        return self._params

    def with_site(self, site) -> "SessionContext":
        return self.with_params(site=site)

    def with_params(self, **params) -> "SessionContext":
        merged = {**self._params, **params}
        return SessionContext(merged.pop("auth"), **merged)

    def __repr__(self):
        # never echo the token
        keys = [k for k in self._params if k != "auth"]
        return f"SessionContext(auth=***, {', '.join(f'{k}={self._params[k]!r}' for k in keys)})"


@dataclass(frozen=True)
class RequestPayload:
    params: Optional[Dict[str, Any]] = None
    data: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def is_write(self) -> bool:
        return self.data is not None


def build_params(session_context: SessionContext, extra: Optional[Mapping[str, Any]] = None,
                 is_write: bool = False) -> RequestPayload:
    """
    Merge the session context with call-specific values (extra wins on collisions).

    Reads come back as query params for requests' `params=`; writes as a flat
    form-encoded body plus the form Content-Type header.
    """
    merged = {**session_context.params, **(extra or {})}
    params = {}
    for key, value in merged.items():
        if value is None:
            continue
        params[key] = to_wire_value(key, value, flat=is_write)

    if not is_write:
        return RequestPayload(params=params)
    return RequestPayload(data=urlencode(params), headers=dict(FORM_HEADERS))


class APIClient:
    def __init__(self, server, session_context: SessionContext, scheme="https", timeout=30,
                 session: Optional[requests.Session] = None):
        server = server.rstrip('/')
        if "://" not in server:
            server = f"{scheme}://{server}"
        self.server = server
        self.base_url = f"{server}{API_PATH}"
        self.context = session_context
        self.session = session or requests.Session()
        self.timeout = timeout

    def _url(self, endpoint):
        return f"{self.base_url}{endpoint.lstrip('/')}"

    def with_site(self, site) -> "APIClient":
        return APIClient(self.server, self.context.with_site(site), timeout=self.timeout, session=self.session)

    def read(self, endpoint, extra=None) -> requests.Response:
        payload = build_params(self.context, extra, is_write=False)
        url = self._url(endpoint)
        logger.debug("GET %s (%s)", url, ", ".join(k for k in payload.params if k != "auth"))
        return self.session.get(url, params=payload.params, timeout=self.timeout)

    def write(self, endpoint, extra=None) -> requests.Response:
        payload = build_params(self.context, extra, is_write=True)
        url = self._url(endpoint)
        logger.debug("POST %s", url)
        return self.session.post(url, data=payload.data, headers=payload.headers, timeout=self.timeout)
