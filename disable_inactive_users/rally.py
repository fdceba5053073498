"""Rally Web Services API helpers for DisableInactiveUsers."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

import requests

from disable_inactive_users.errors import RallyAPIError

if TYPE_CHECKING:  # pragma: no cover
    from disable_inactive_users.config import RallyConfig


logger = logging.getLogger(__name__)

USER_FETCH_FIELDS = (
    "CreationDate",
    "Disabled",
    "EmailAddress",
    "LastLoginDate",
    "ObjectID",
    "UserName",
    "SubscriptionPermission",
)
DEFAULT_USER_QUERY = "(ObjectID > 0)"
DEFAULT_PAGE_SIZE = 200
REQUEST_TIMEOUT = 30
MAX_THROTTLE_RETRIES = 5
RALLY_TIMESTAMP_FORMATS = (
    "%Y-%m-%dT%H:%M:%S.%fZ",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%d",
)


def parse_rally_datetime(value: object) -> Optional[datetime]:
    """Parse a WSAPI timestamp such as ``2024-01-02T03:04:05.678Z`` into aware UTC.

    ``None`` and blank strings mean "no value" and give ``None``. Anything else
    that is not a Rally timestamp raises ``ValueError``.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        for fmt in RALLY_TIMESTAMP_FORMATS:
            try:
                return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
            except ValueError:
                continue
        # explicit offsets, e.g. from a custom query proxy
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            raise ValueError(f"unrecognised Rally timestamp {value!r}") from None
    else:
        raise ValueError(f"unrecognised Rally timestamp {value!r}")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def normalize_base_url(base_url: str) -> str:
    """Strip a trailing slash and make sure the URL ends with ``/slm``."""
    url = (base_url or "").strip().rstrip("/")
    if not url.endswith("/slm"):
        url = f"{url}/slm"
    return url


def _raise_for_errors(payload: dict, envelope: str, status_code: Optional[int] = None) -> dict:
    body = payload.get(envelope)
    if not isinstance(body, dict):
        raise RallyAPIError(
            f"Unexpected Rally response: missing '{envelope}'",
            status_code=status_code,
        )
    errors = body.get("Errors") or []
    if errors:
        raise RallyAPIError("; ".join(str(err) for err in errors), status_code=status_code, errors=errors)
    for warning in body.get("Warnings") or []:
        logger.debug("Rally warning: %s", warning)
    return body


class RallyClient:
    """Minimal WSAPI client: read users, update a user."""

    def __init__(self, config: RallyConfig, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.base_url = normalize_base_url(config.base_url)
        self.api_url = f"{self.base_url}/webservice/{config.version}"
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Content-Type": "application/json",
                "X-RallyIntegrationName": config.integration_name,
                "X-RallyIntegrationVendor": config.integration_vendor,
                "X-RallyIntegrationVersion": config.integration_version,
            }
        )
        if config.api_key:
            self.session.headers["ZSESSIONID"] = config.api_key
        else:
            self.session.auth = (config.username, config.password)
        self._security_token: Optional[str] = None

    def describe(self) -> list[str]:
        password = self.config.password or ""
        return [
            f"\tBaseURL  : <{self.base_url}>",
            f"\tUserName : <{self.config.username}>",
            f"\tPassword : <{'*' * len(password)}>",
            f"\tVersion  : <{self.config.version}>",
        ]

    def _get(self, url: str, params: Optional[dict] = None) -> requests.Response:
        retries = 0
        while True:
            response = self.session.get(url, params=params, timeout=REQUEST_TIMEOUT)
            if response.status_code == 429 and retries < MAX_THROTTLE_RETRIES:
                retry_after = response.headers.get("Retry-After")
                delay = 5
                try:
                    delay = max(int(retry_after), delay)
                except (TypeError, ValueError):
                    pass
                retries += 1
                logger.warning("Rally throttled the request; retrying in %s seconds", delay)
                time.sleep(delay)
                continue
            response.raise_for_status()
            return response

    def _get_security_token(self) -> Optional[str]:
        # API-key sessions do not need a token for writes.
        if self.config.api_key:
            return None
        if self._security_token is None:
            response = self._get(f"{self.api_url}/security/authorize")
            body = _raise_for_errors(response.json(), "OperationResult", response.status_code)
            self._security_token = body.get("SecurityToken")
        return self._security_token

    def fetch_users(
        self,
        query: str = DEFAULT_USER_QUERY,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> list[dict]:
        """Return every user matching ``query`` as plain WSAPI dicts."""
        url = f"{self.api_url}/user"
        params = {
            "query": query,
            "fetch": ",".join(USER_FETCH_FIELDS),
            "pagesize": page_size,
            "start": 1,
        }
        users: list[dict] = []
        total: Optional[int] = None

        while total is None or len(users) < total:
            response = self._get(url, params=params)
            body = _raise_for_errors(response.json(), "QueryResult", response.status_code)
            results = body.get("Results") or []
            total = int(body.get("TotalResultCount") or 0)
            users.extend(results)
            if not results:
                break
            params["start"] += len(results)

        logger.info("Found a total of <%s> users in this subscription", total or 0)
        return users

    def update_user(self, object_id: Any, fields: dict) -> dict:
        """Update one user and return the fields Rally echoes back."""
        url = f"{self.api_url}/user/{object_id}"
        params = {}
        token = self._get_security_token()
        if token:
            params["key"] = token
        response = self.session.post(
            url,
            params=params,
            json={"User": fields},
            timeout=REQUEST_TIMEOUT,
        )
        response.raise_for_status()
        body = _raise_for_errors(response.json(), "OperationResult", response.status_code)
        updated = body.get("Object")
        if not isinstance(updated, dict):
            raise RallyAPIError(
                f"Rally returned no object for user {object_id}",
                status_code=response.status_code,
            )
        return updated


__all__ = [
    "DEFAULT_USER_QUERY",
    "RallyClient",
    "USER_FETCH_FIELDS",
    "normalize_base_url",
    "parse_rally_datetime",
]
