from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from logging_config import Timer

logger = structlog.get_logger()

JSON_API = "application/vnd.api+json"


@dataclass
class KlaviyoResponse:
    """Outcome of one Klaviyo API call, whatever its status."""
    ok: bool
    status: int
    json: Any = None
    text: str = ""

    @property
    def diagnostic(self) -> Any:
        """Body to surface in an error response: parsed JSON, else raw text."""
        return self.json if self.json is not None else self.text


class KlaviyoClient:
    """Thin client for the Klaviyo JSON:API endpoints the subscribe flow needs.

    Non-2xx responses are returned, never raised; the caller inspects
    ``ok``/``status``. Transport failures (``httpx.HTTPError``) propagate.
    """

    def __init__(
        self,
        api_key: str,
        revision: str,
        base_url: str = "https://a.klaviyo.com/api",
        http_client: httpx.Client | None = None,
    ) -> None:
        self._api_key = api_key
        self._revision = revision
        self._base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client()

    def __enter__(self) -> "KlaviyoClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Klaviyo-API-Key {self._api_key}",
            "Accept": JSON_API,
            "Content-Type": JSON_API,
            "Revision": self._revision,
        }

    def request(
        self,
        path: str,
        method: str = "GET",
        body: dict | None = None,
        params: dict[str, str] | None = None,
    ) -> KlaviyoResponse:
        """Send one request and capture status, parsed JSON and raw text."""
        with Timer() as t:
            response = self._http.request(
                method,
                f"{self._base_url}{path}",
                headers=self._headers(),
                json=body,
                params=params,
            )

        text = response.text
        try:
            data = response.json() if text else None
        except ValueError:
            data = None

        logger.info(
            "Klaviyo call",
            method=method,
            path=path,
            status=response.status_code,
            duration_ms=t.duration_ms,
        )
        return KlaviyoResponse(
            ok=response.is_success,
            status=response.status_code,
            json=data,
            text=text,
        )

    def create_profile(
        self,
        email: str,
        first_name: str,
        last_name: str,
        properties: dict[str, Any],
    ) -> KlaviyoResponse:
        return self.request(
            "/profiles/",
            method="POST",
            body={
                "data": {
                    "type": "profile",
                    "attributes": {
                        "email": email,
                        "first_name": first_name,
                        "last_name": last_name,
                        "properties": properties,
                    },
                }
            },
        )

    def find_profiles_by_email(self, email: str) -> KlaviyoResponse:
        return self.request(
            "/profiles/",
            params={"filter": f'equals(email,"{email}")'},
        )

    def add_profile_to_list(self, list_id: str, profile_id: str) -> KlaviyoResponse:
        return self.request(
            f"/lists/{list_id}/relationships/profiles/",
            method="POST",
            body={"data": [{"type": "profile", "id": profile_id}]},
        )


def profile_id_from(response: KlaviyoResponse) -> str | None:
    """Id from a single-profile document (``data.id``)."""
    data = response.json.get("data") if isinstance(response.json, dict) else None
    if isinstance(data, dict):
        return data.get("id") or None
    return None


def first_profile_id_from(response: KlaviyoResponse) -> str | None:
    """Id of the first profile in a collection document (``data[0].id``)."""
    data = response.json.get("data") if isinstance(response.json, dict) else None
    if isinstance(data, list) and data and isinstance(data[0], dict):
        return data[0].get("id") or None
    return None
