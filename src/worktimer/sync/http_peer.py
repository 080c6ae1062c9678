"""
Remote peer speaking JSON over HTTP using requests.

Endpoints (relative to ``base_url``)::

    GET  /status                          -> {"status": "available"|"unavailable"|"restricted"}
    PUT  /zones/<zone>                    -> create zone (idempotent)
    PUT  /zones/<zone>/subscriptions/<id> -> register change subscription
    GET  /zones/<zone>/changes?cursor=    -> {"records": [...], "cursor": "...", "hasMore": bool}
    PUT  /zones/<zone>/records/<id>       -> {"recordVersion": "..."}; 409 carries {"record": {...}}
    GET  /zones/<zone>/records/<id>       -> record or 404
    GET  /zones/<zone>/records?page=      -> {"records": [...], "nextPage": "..."|null}
"""
from __future__ import annotations

import logging
from typing import Any, Iterator, Optional

import requests

from ..core.constants import DEFAULT_REMOTE_TIMEOUT_SECONDS, DEFAULT_ZONE_NAME, SUBSCRIPTION_ID
from ..core.enums import Availability
from ..core.exceptions import RemoteConflict, RemoteFatal, RemoteTimeout, RemoteUnavailable
from .model import ChangeRecord, PullPage, SyncCursor

logger = logging.getLogger(__name__)

_QUOTA_STATUSES = {429, 507}
_UNAVAILABLE_STATUSES = {502, 503, 504}
_AVAILABILITY = {
    "available": Availability.AVAILABLE,
    "unavailable": Availability.UNAVAILABLE,
    "restricted": Availability.RESTRICTED,
}


class HttpRemotePeer:
    def __init__(self, config: dict[str, Any]):
        self._base_url = str(config.get("base_url") or "").rstrip("/")
        self._zone = str(config.get("zone") or DEFAULT_ZONE_NAME)
        self._timeout = float(config.get("timeout", DEFAULT_REMOTE_TIMEOUT_SECONDS))
        self._verify = config.get("verify", True)
        self._session = requests.Session()
        self._session.headers.update({"Accept": "application/json"})
        token = config.get("token")
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"

    @property
    def configured(self) -> bool:
        return bool(self._base_url)

    def _zone_url(self, *parts: str) -> str:
        return "/".join([self._base_url, "zones", self._zone, *parts])

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        if not self._base_url:
            raise RemoteUnavailable("Remote peer is not configured")
        try:
            response = self._session.request(method, url, timeout=self._timeout, verify=self._verify, **kwargs)
        except requests.Timeout as exc:
            raise RemoteTimeout(f"{method} {url} timed out") from exc
        except requests.ConnectionError as exc:
            raise RemoteUnavailable(f"Cannot reach remote peer: {exc}") from exc
        except requests.RequestException as exc:
            raise RemoteFatal(f"{method} {url} failed: {exc}") from exc

        if response.status_code in _QUOTA_STATUSES:
            raise RemoteUnavailable("Remote storage quota exceeded", quota=True)
        if response.status_code in _UNAVAILABLE_STATUSES:
            raise RemoteUnavailable(f"Remote peer answered {response.status_code}")
        return response

    @staticmethod
    def _json(response: requests.Response) -> dict[str, Any]:
        try:
            return response.json() or {}
        except ValueError as exc:
            raise RemoteFatal(f"Invalid JSON from remote peer ({response.status_code})") from exc

    @staticmethod
    def _raise_for_status(response: requests.Response) -> None:
        if response.status_code >= 400:
            raise RemoteFatal(f"Remote peer answered {response.status_code}: {response.text[:200]}")

    def check_availability(self) -> Availability:
        if not self._base_url:
            return Availability.UNAVAILABLE
        response = self._request("GET", f"{self._base_url}/status")
        if response.status_code in (401, 403):
            return Availability.RESTRICTED
        self._raise_for_status(response)
        value = str(self._json(response).get("status", "")).lower()
        return _AVAILABILITY.get(value, Availability.UNKNOWN)

    def ensure_container(self) -> None:
        response = self._request("PUT", self._zone_url())
        self._raise_for_status(response)
        logger.debug("Zone %s ensured", self._zone)

    def subscribe_to_changes(self) -> None:
        response = self._request("PUT", self._zone_url("subscriptions", SUBSCRIPTION_ID))
        self._raise_for_status(response)

    def pull_changes(self, cursor: Optional[SyncCursor]) -> PullPage:
        params = {"cursor": cursor.token} if cursor is not None else {}
        response = self._request("GET", self._zone_url("changes"), params=params)
        if response.status_code == 410:
            # Expired cursor: start again from the beginning
            logger.warning("Remote change cursor expired, pulling from scratch")
            response = self._request("GET", self._zone_url("changes"))
        self._raise_for_status(response)
        body = self._json(response)
        return PullPage(
            records=[ChangeRecord.from_dict(item) for item in body.get("records", [])],
            next_cursor=SyncCursor(str(body["cursor"])),
            has_more=bool(body.get("hasMore", False)),
        )

    def push_record(self, change: ChangeRecord) -> str:
        response = self._request("PUT", self._zone_url("records", change.identity), json=change.to_dict())
        if response.status_code == 409:
            server = self._json(response).get("record")
            raise RemoteConflict(change.identity, ChangeRecord.from_dict(server) if server else None)
        self._raise_for_status(response)
        return str(self._json(response)["recordVersion"])

    def fetch_record(self, identity: str) -> Optional[ChangeRecord]:
        response = self._request("GET", self._zone_url("records", identity))
        if response.status_code == 404:
            return None
        self._raise_for_status(response)
        return ChangeRecord.from_dict(self._json(response))

    def pull_all(self) -> Iterator[ChangeRecord]:
        page: Optional[str] = None
        while True:
            params = {"page": page} if page else {}
            response = self._request("GET", self._zone_url("records"), params=params)
            self._raise_for_status(response)
            body = self._json(response)
            for item in body.get("records", []):
                yield ChangeRecord.from_dict(item)
            page = body.get("nextPage")
            if not page:
                return

    def close(self) -> None:
        self._session.close()
