"""Secrets Manager lookup for the Klaviyo private API key.

The CDK stack keeps the key in Secrets Manager and hands the function only
the secret id; the value is fetched at runtime and cached per warm container.
"""

import json
import time
from typing import Any

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

logger = structlog.get_logger()

# Cache TTL for secrets (in seconds)
_SECRET_CACHE_TTL = 300

# Field read when the secret is stored as a JSON object
API_KEY_FIELD = "api_key"


class SecretStore:
    """AWS Secrets Manager client with a small in-memory cache."""

    def __init__(self, client: Any = None, region_name: str | None = None) -> None:
        self._client = client or boto3.client("secretsmanager", region_name=region_name)
        self._cache: dict[str, tuple[str, float]] = {}

    def get_secret_string(self, secret_id: str) -> str:
        """Raw secret string, served from cache while fresh."""
        if secret_id in self._cache:
            value, cached_at = self._cache[secret_id]
            if time.time() - cached_at < _SECRET_CACHE_TTL:
                return value

        response = self._client.get_secret_value(SecretId=secret_id)
        value = response.get("SecretString") or ""
        self._cache[secret_id] = (value, time.time())
        logger.info("Secret fetched", secret_id=secret_id)
        return value

    def get_api_key(self, secret_id: str) -> str:
        """
        Klaviyo key stored either as a plain string or as ``{"api_key": ...}``.

        Returns an empty string when the secret cannot be read; the caller
        then reports the key as missing.
        """
        try:
            raw = self.get_secret_string(secret_id)
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to fetch secret", secret_id=secret_id, error=str(e))
            return ""

        raw = raw.strip()
        if raw.startswith("{"):
            try:
                return str(json.loads(raw).get(API_KEY_FIELD) or "").strip()
            except ValueError:
                logger.error("Secret is not valid JSON", secret_id=secret_id)
                return ""
        return raw

    def clear_cache(self) -> None:
        self._cache.clear()


_store: SecretStore | None = None


def get_secret_store() -> SecretStore:
    """Get or create the container-wide SecretStore."""
    global _store
    if _store is None:
        _store = SecretStore()
    return _store


def fetch_api_key(secret_id: str) -> str:
    """Klaviyo key for ``secret_id``, or an empty string when the store cannot be reached."""
    try:
        store = get_secret_store()
    except BotoCoreError as e:
        logger.error("Failed to create Secrets Manager client", error=str(e))
        return ""
    return store.get_api_key(secret_id)
