"""
Ingestion transport - sends record batches to the Langfuse ingestion API.

The event manager only depends on IngestionTransport. HttpIngestionClient is
the production implementation; tests substitute their own.

Wire protocol:
    POST {host}/api/public/ingestion   (HTTP basic auth: public key / secret key)
    {"batch": [{"id", "type", "body", "timestamp"}, ...], "metadata": {...}}

    2xx (usually 207 Multi-Status):
    {"successes": [{"id", "status"}], "errors": [{"id", "status", "message", "error"}]}
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import requests

from .errors import TransportError
from .record import Record

logger = logging.getLogger(__name__)

DEFAULT_HOST = "https://cloud.langfuse.com"
INGESTION_PATH = "/api/public/ingestion"
HEALTH_PATH = "/api/public/health"


@dataclass
class IngestionError:
    """Per-record rejection reported by the ingestion endpoint."""
    id: str
    status: Optional[int] = None
    message: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IngestionError":
        message = data.get("message") or data.get("error") or ""
        if not isinstance(message, str):
            message = str(message)
        return cls(id=str(data.get("id", "")), status=data.get("status"), message=message)


class IngestionTransport(ABC):
    """Anything that can deliver a batch of records."""

    @abstractmethod
    def send_batch(self, records: Sequence[Record]) -> List[IngestionError]:
        """
        Deliver a batch of records as a single call.

        Returns:
            Per-record errors. An empty list means every record was accepted.

        Raises:
            TransportError: If the call itself could not complete.
        """
        pass


class HttpIngestionClient(IngestionTransport):
    """
    requests-based client for the Langfuse public API.

    Usage:
        client = HttpIngestionClient("https://cloud.langfuse.com", "pk-...", "sk-...")
        errors = client.send_batch(records)
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        public_key: str = "",
        secret_key: str = "",
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.host = (host or DEFAULT_HOST).rstrip("/")
        self.timeout = timeout
        self._owns_session = session is None
        self._session = session or requests.Session()
        self._auth = (public_key, secret_key)

    @property
    def session(self) -> requests.Session:
        return self._session

    def send_batch(self, records: Sequence[Record]) -> List[IngestionError]:
        payload = {
            "batch": [record.to_dict() for record in records],
            "metadata": {"batch_size": len(records), "sdk_name": "python"},
        }
        response = self._request("POST", INGESTION_PATH, json=payload)

        try:
            data = response.json()
        except ValueError:
            logger.debug(f"Ingestion response is not JSON (status {response.status_code})")
            return []

        if not isinstance(data, dict):
            return []

        return [
            IngestionError.from_dict(item)
            for item in data.get("errors") or []
            if isinstance(item, dict)
        ]

    def health(self) -> Dict[str, Any]:
        """Call the health endpoint and return its JSON body."""
        response = self._request("GET", HEALTH_PATH)
        try:
            return response.json()
        except ValueError:
            return {"status": response.text}

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = f"{self.host}{path}"
        try:
            response = self._session.request(
                method, url, auth=self._auth, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        if response.status_code >= 400:
            raise TransportError(
                f"{method} {url} returned HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        return response

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "HttpIngestionClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()
