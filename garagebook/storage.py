"""Persistence backends for the garage ledger document."""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

import requests

from .config import Settings
from .exceptions import PersistenceError
from .models import LedgerDocument

logger = logging.getLogger(__name__)


class LedgerStore(Protocol):
    """Read-all / write-all access to the two ledger collections."""

    def load(self) -> LedgerDocument:
        ...

    def save(self, document: LedgerDocument) -> None:
        ...


class JSONFileStore:
    """Single-document JSON file storage with crash-safe writes."""

    def __init__(self, base_path: Path, resource: str = "garage-ledger.json") -> None:
        self._base_path = Path(base_path)
        self._base_path.mkdir(parents=True, exist_ok=True)
        self._resource = resource

    def load(self) -> LedgerDocument:
        path = self.path
        if not path.exists():
            return LedgerDocument()
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except json.JSONDecodeError as exc:
            raise PersistenceError(f"Corrupted JSON data in {path}") from exc
        except OSError as exc:
            raise PersistenceError(f"Unable to read from {path}") from exc

        if not isinstance(payload, dict):
            raise PersistenceError(f"Expected an object payload in {path}")
        return LedgerDocument.from_dict(payload)

    def save(self, document: LedgerDocument) -> None:
        path = self.path
        temp_path: Optional[Path] = None
        try:
            # One temp file per write so concurrent saves never share a file.
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._base_path,
                prefix=f".{self._resource}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                temp_path = Path(handle.name)
                json.dump(document.to_dict(), handle, indent=2, ensure_ascii=False)
                handle.flush()
            # Path.replace is an atomic rename on POSIX.
            temp_path.replace(path)
        except OSError as exc:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            raise PersistenceError(f"Unable to write to {path}") from exc

    @property
    def base_path(self) -> Path:
        return self._base_path

    @property
    def path(self) -> Path:
        return self._base_path / self._resource


class RemoteStore:
    """Ledger document held by an HTTP endpoint (GET to read, PUT to write).

    There is no compare-and-swap: concurrent writers race and the last PUT wins.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._session = session or requests.Session()

    def load(self) -> LedgerDocument:
        try:
            response = self._session.get(self._url, timeout=self._timeout)
            response.raise_for_status()
            payload: Any = response.json()
        except requests.RequestException as exc:
            raise PersistenceError(f"Unable to fetch ledger from {self._url}: {exc}") from exc
        except ValueError as exc:
            raise PersistenceError(f"Malformed JSON returned by {self._url}") from exc

        if not isinstance(payload, dict):
            raise PersistenceError(f"Expected an object payload from {self._url}")
        return LedgerDocument.from_dict(payload)

    def save(self, document: LedgerDocument) -> None:
        body: Dict[str, Any] = document.to_dict()
        try:
            response = self._session.put(self._url, json=body, timeout=self._timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise PersistenceError(f"Unable to save ledger to {self._url}: {exc}") from exc
        logger.debug(
            "Saved %d invoices and %d expenses to %s",
            len(document.invoices),
            len(document.expenses),
            self._url,
        )

    @property
    def url(self) -> str:
        return self._url


def build_store(settings: Settings) -> LedgerStore:
    """Pick the remote store when a URL is configured, else the local file."""
    if settings.remote_url:
        logger.info("Using remote ledger at %s", settings.remote_url)
        return RemoteStore(settings.remote_url, timeout=settings.timeout)
    logger.info("Using local ledger in %s", settings.data_dir)
    return JSONFileStore(settings.data_dir)

