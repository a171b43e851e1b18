# modules/transport.py

# =========================================
# Necessary imports and utilities
# =========================================

from __future__ import annotations

import json
import logging

from typing import Any, Callable, Dict, Optional

import requests

from utils.global_variables import TRANSPORT_TIMEOUT

logger = logging.getLogger(__name__)

# Anything that accepts the finalized payload and raises TransportError on failure.
Transport = Callable[[Dict[str, Any]], None]


class TransportError(Exception):
    """The submission could not be handed to the collector."""


# =========================================
# Spreadsheet collector
# =========================================

class SheetsTransport:
    """
    Post form submissions to a Google Apps Script web app that appends them to
    a spreadsheet.

    The web app does not return a readable body to anonymous callers, so the
    submission counts as delivered whenever the request itself completes. The
    HTTP status is logged and never inspected: an accepted row and a silently
    dropped one look the same from here.

    Parameters
    ----------
    url:
        The `/exec` URL of the deployed script.
    timeout:
        Seconds to wait for connect/read before giving up; a timeout is
        reported as a `TransportError` so the user can retry.
    session:
        Optional `requests.Session` (handy for connection reuse and tests).
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = TRANSPORT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not url:
            raise ValueError("SheetsTransport needs the collector URL")
        self.url = url
        self.timeout = timeout
        self._session = session

    def __call__(self, payload: Dict[str, Any]) -> None:
        self.send(payload)

    def send(self, payload: Dict[str, Any]) -> None:
        body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        post = self._session.post if self._session is not None else requests.post
        try:
            response = post(
                self.url,
                data=body,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"could not reach the collector: {exc}") from exc

        logger.debug(
            "Collector answered %s for response %s",
            getattr(response, "status_code", "?"), payload.get("respostaId", ""),
        )
