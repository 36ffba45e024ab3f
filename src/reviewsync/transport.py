"""
transport.py
------------
Synchronous HTTP transport used by executors to reach remote endpoints.
Every requests-level failure is surfaced as a single TransportError.
"""
from dataclasses import dataclass
from typing import Optional

import requests


class TransportError(Exception):
    pass


@dataclass(frozen=True)
class HttpResponse:
    status_code: int
    body: str


class RequestsTransport:
    def __init__(self, session: Optional[requests.Session] = None):
        # Without a session each call goes through requests.get, which closes its own
        self.session = session

    def get(self, url: str, timeout: Optional[float] = None) -> HttpResponse:
        getter = self.session.get if self.session is not None else requests.get
        try:
            resp = getter(url, timeout=timeout)
        except requests.Timeout as e:
            raise TransportError(f"Request timed out after {timeout}s") from e
        except requests.RequestException as e:
            raise TransportError(str(e)) from e
        return HttpResponse(status_code=resp.status_code, body=resp.text)
