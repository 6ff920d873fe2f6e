import json

import httpx
import pytest

from settings import Settings


class FakeKlaviyo:
    """Records requests and answers them from a per-route queue of responses."""

    def __init__(self):
        self.calls: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], list[httpx.Response]] = {}

    def add(self, method: str, path: str, status: int, payload=None, text: str | None = None):
        if text is not None:
            response = httpx.Response(status, text=text)
        elif payload is not None:
            response = httpx.Response(status, json=payload)
        else:
            response = httpx.Response(status)
        self.routes.setdefault((method, path), []).append(response)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"errors": [{"detail": "no route"}]})
        return queue.pop(0)

    def calls_to(self, method: str, path: str) -> list[httpx.Request]:
        return [c for c in self.calls if c.method == method and c.url.path == path]

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handle))


@pytest.fixture
def fake_klaviyo() -> FakeKlaviyo:
    return FakeKlaviyo()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        klaviyo_private_api_key="pk_test_123",
        klaviyo_list_id="LIST42",
        klaviyo_revision="2024-10-15",
    )


@pytest.fixture
def valid_payload() -> dict:
    return {
        "full_name": "Jane Q Public",
        "email": "jane@example.com",
        "budget": "5000-10000",
        "website": "https://jane.example.com",
        "language": "EN ",
        "utm_source": "google",
        "utm_medium": "cpc",
        "utm_campaign": "spring",
        "page_path": "/en/",
    }


@pytest.fixture
def make_event():
    def _make(body=None, method: str = "POST", raw: str | None = None) -> dict:
        return {
            "httpMethod": method,
            "headers": {"Content-Type": "application/json"},
            "body": raw if raw is not None else (json.dumps(body) if body is not None else None),
            "isBase64Encoded": False,
        }

    return _make


@pytest.fixture(autouse=True)
def clean_klaviyo_env(monkeypatch):
    for name in (
        "KLAVIYO_PRIVATE_API_KEY",
        "KLAVIYO_API_KEY_SECRET_ID",
        "KLAVIYO_LIST_ID",
        "KLAVIYO_REVISION",
        "KLAVIYO_BASE_URL",
        "PROFILE_SOURCE",
    ):
        monkeypatch.delenv(name, raising=False)
