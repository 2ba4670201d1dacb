"""
Trust Store module for TOFU certificate pinning.

Remembers the SHA-256 fingerprint of the first certificate each Gemini
server presents and compares every later handshake against it. Entries are
keyed by host and port and persisted as a JSON document.
"""

import asyncio
import json
import os
import threading
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator, Optional

from .enums import TrustDecision
from .exceptions import PersistenceError
from .fetch_logger import FetchLogger
from .models import TrustEntry


class TrustStore:
    """
    File-backed trust-on-first-use store.

    Guarantees:
    - At most one fingerprint per (host, port)
    - A recorded fingerprint is never replaced by a different one
    - A mismatch leaves the store untouched
    - A missing or corrupt file starts an empty store instead of failing
    """

    COMPONENT = "trust_store"

    def __init__(self, file_path: Path, logger: Optional[FetchLogger] = None) -> None:
        """
        Initialize the trust store.

        Args:
            file_path: Path to the known-hosts file (JSON format)
            logger: Optional logger for load and trust events
        """
        self._file_path = Path(file_path)
        self._logger = logger
        self._entries: dict[str, TrustEntry] = {}
        self._loaded = False
        # Guards the entry dict and the file
        self._mutex = threading.RLock()
        # One connection attempt per host:port at a time
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @property
    def file_path(self) -> Path:
        return self._file_path

    @staticmethod
    def make_key(host: str, port: int) -> str:
        return f"{host.lower()}:{port}"

    def load(self) -> int:
        """
        Load entries from disk, replacing anything held in memory.

        Returns:
            Number of entries loaded
        """
        with self._mutex:
            self._entries = {}
            self._loaded = True

            if not self._file_path.exists():
                return 0

            try:
                with open(self._file_path, "r", encoding="utf-8") as f:
                    raw_data = json.load(f)
            except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
                self._warn("Known hosts file unreadable, starting empty", {
                    "file_path": str(self._file_path),
                    "reason": str(e),
                })
                return 0

            if not isinstance(raw_data, dict):
                self._warn("Known hosts file has unexpected structure, starting empty", {
                    "file_path": str(self._file_path),
                })
                return 0

            for key, value in raw_data.items():
                entry = self._entry_from_json(key, value)
                if entry is None:
                    self._warn("Skipping invalid known hosts entry", {"key": key})
                    continue
                self._entries[entry.key] = entry

            return len(self._entries)

    def save(self) -> None:
        """
        Write all entries to disk.

        Raises:
            PersistenceError: If the file cannot be written
        """
        with self._mutex:
            output_data = {
                key: {
                    "fingerprint": entry.fingerprint,
                    "first_seen": entry.first_seen,
                    "last_seen": entry.last_seen,
                }
                for key, entry in sorted(self._entries.items())
            }

            tmp_path = self._file_path.with_name(self._file_path.name + ".tmp")
            try:
                self._file_path.parent.mkdir(parents=True, exist_ok=True)
                with open(tmp_path, "w", encoding="utf-8") as f:
                    json.dump(output_data, f, indent=2, sort_keys=True)
                os.replace(tmp_path, self._file_path)
            except OSError as e:
                raise PersistenceError(str(self._file_path), str(e))

    def lookup(self, host: str, port: int) -> Optional[TrustEntry]:
        """Return the trusted entry for host:port, if any."""
        with self._mutex:
            self._ensure_loaded()
            return self._entries.get(self.make_key(host, port))

    def record(self, host: str, port: int, fingerprint: str) -> bool:
        """
        Trust a fingerprint for host:port if nothing is recorded yet.

        Returns:
            True if a new entry was recorded, False if an entry already
            existed (the existing entry is left as it is)

        Raises:
            PersistenceError: If the new entry cannot be written. The entry
                stays trusted in memory for the rest of the session.
        """
        with self._mutex:
            self._ensure_loaded()
            key = self.make_key(host, port)
            if key in self._entries:
                return False

            now = datetime.now(timezone.utc).isoformat()
            self._entries[key] = TrustEntry(
                host=host.lower(),
                port=port,
                fingerprint=fingerprint.lower(),
                first_seen=now,
                last_seen=now,
            )
            self.save()
            return True

    def verify(self, host: str, port: int, fingerprint: str) -> TrustDecision:
        """
        Check a presented fingerprint against the stored one.

        FIRST_USE records and flushes the fingerprint. If the flush fails the
        fingerprint is still trusted for this session and a warning is
        logged. MATCH refreshes the in-memory last_seen. MISMATCH changes
        nothing.
        """
        fingerprint = fingerprint.lower()
        with self._mutex:
            entry = self.lookup(host, port)

            if entry is None:
                try:
                    self.record(host, port, fingerprint)
                except PersistenceError as e:
                    self._log("warn", "Could not save trusted certificate", {
                        "host": host, "port": port, "error": e.details.get("reason", str(e)),
                    })
                    return TrustDecision.FIRST_USE
                self._log("info", "Trusted new certificate", {
                    "host": host, "port": port, "fingerprint": fingerprint,
                })
                return TrustDecision.FIRST_USE

            if entry.fingerprint == fingerprint:
                entry.last_seen = datetime.now(timezone.utc).isoformat()
                return TrustDecision.MATCH

            self._log("warn", "Certificate does not match trusted fingerprint", {
                "host": host,
                "port": port,
                "trusted_fingerprint": entry.fingerprint,
                "presented_fingerprint": fingerprint,
            })
            return TrustDecision.MISMATCH

    def forget(self, host: str, port: int) -> bool:
        """
        Remove the entry for host:port and flush.

        Returns:
            True if an entry was removed
        """
        with self._mutex:
            self._ensure_loaded()
            entry = self._entries.pop(self.make_key(host, port), None)
            if entry is None:
                return False
            self.save()
            return True

    def entries(self) -> list[TrustEntry]:
        """All trusted entries ordered by key."""
        with self._mutex:
            self._ensure_loaded()
            return [self._entries[key] for key in sorted(self._entries)]

    @asynccontextmanager
    async def acquire(self, host: str, port: int) -> AsyncIterator[None]:
        """
        Serialize connection attempts to the same host:port.

        Usage:
            async with trust_store.acquire(host, port):
                # handshake, then verify() while holding the lock
                ...
        """
        async with self._locks[self.make_key(host, port)]:
            yield

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    @staticmethod
    def _entry_from_json(key: str, value: object) -> Optional[TrustEntry]:
        if not isinstance(value, dict):
            return None
        host, sep, port_text = key.rpartition(":")
        if not sep or not host or not port_text.isdigit():
            return None
        fingerprint = value.get("fingerprint")
        if not isinstance(fingerprint, str) or not fingerprint:
            return None
        first_seen = str(value.get("first_seen", ""))
        return TrustEntry(
            host=host.lower(),
            port=int(port_text),
            fingerprint=fingerprint.lower(),
            first_seen=first_seen,
            last_seen=str(value.get("last_seen", first_seen)),
        )

    def _warn(self, message: str, data: dict) -> None:
        self._log("warn", message, data)

    def _log(self, level: str, message: str, data: dict) -> None:
        if self._logger is None:
            return
        if level == "warn":
            self._logger.warn(self.COMPONENT, message, data)
        else:
            self._logger.info(self.COMPONENT, message, data)
