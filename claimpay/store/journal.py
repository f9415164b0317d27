"""
claimpay/store/journal.py

Append-only JSONL claim journal.

Journal contract — every put() MUST, in this exact order:
  1. Acquire lock
  2. SCALE-encode the claim record
  3. Build the entry: index, previous_hash, timestamp, claim_id, record
  4. entry_hash = SHA-256(JCS(entry without entry_hash))
  5. Append one line, flush, fsync
  6. Advance in-memory state, only after the confirmed write

On open the whole journal is replayed: the hash chain is checked line by
line and the last record per claim id wins. Any corruption is a StoreError.
The file is never rewritten. Older records for a claim stay in place.
"""

import json
import logging
import os
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple

from claimpay.core.canonical import canonical_hash
from claimpay.core.exceptions import CodecError, StoreError
from claimpay.core.models import Claim
from claimpay.store.store import ClaimStore


logger = logging.getLogger(__name__)

GENESIS_HASH = "0" * 64


def entry_timestamp(now: Optional[datetime] = None) -> str:
    """
    UTC time of a journal line, millisecond precision: 2024-01-02T03:04:05.678Z.
    Informational only. Claims have no expiry.
    """
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


@dataclass
class JournalEntry:
    """A single line of the journal."""
    index:         int
    previous_hash: str
    timestamp:     str
    claim_id:      str
    record:        str   # hex of Claim.to_scale()
    entry_hash:    str = ""

    def to_hash_dict(self) -> Dict[str, Any]:
        """Everything except entry_hash. This is what entry_hash commits to."""
        return {
            "claim_id":      self.claim_id,
            "index":         self.index,
            "previous_hash": self.previous_hash,
            "record":        self.record,
            "timestamp":     self.timestamp,
        }

    def compute_hash(self) -> str:
        return canonical_hash(self.to_hash_dict())

    def to_dict(self) -> Dict[str, Any]:
        d = self.to_hash_dict()
        d["entry_hash"] = self.entry_hash
        return d

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "JournalEntry":
        return JournalEntry(
            index=         data["index"],
            previous_hash= data["previous_hash"],
            timestamp=     data["timestamp"],
            claim_id=      data["claim_id"],
            record=        data["record"],
            entry_hash=    data["entry_hash"],
        )

    def claim(self) -> Claim:
        return Claim.from_scale(bytes.fromhex(self.record))


class JsonlClaimStore(ClaimStore):
    """
    Durable claim store backed by a hash-chained JSONL journal.

    Thread-safe via internal lock (single-process only).
    State survives process restart by replaying the journal on __init__.
    """

    def __init__(self, journal_path: Path) -> None:
        self.journal_path = Path(journal_path)

        self._lock:       threading.Lock   = threading.Lock()
        self._claims:     Dict[str, Claim] = {}
        self._entries:    int              = 0
        self._head_hash:  str              = GENESIS_HASH

        if self.journal_path.exists():
            self._load()

    # ── ClaimStore ────────────────────────────────────────────

    def get(self, claim_id: str) -> Optional[Claim]:
        with self._lock:
            return self._claims.get(claim_id)

    def put(self, claim_id: str, claim: Claim) -> None:
        with self._lock:
            entry = JournalEntry(
                index=         self._entries,
                previous_hash= self._head_hash,
                timestamp=     entry_timestamp(),
                claim_id=      claim_id,
                record=        claim.to_scale().hex(),
            )
            entry.entry_hash = entry.compute_hash()

            self._append(entry)

            self._claims[claim_id] = claim
            self._entries         += 1
            self._head_hash        = entry.entry_hash

    def items(self) -> Iterator[Tuple[str, Claim]]:
        with self._lock:
            return iter(list(self._claims.items()))

    def __len__(self) -> int:
        with self._lock:
            return len(self._claims)

    # ── Journal state ─────────────────────────────────────────

    @property
    def entry_count(self) -> int:
        """Number of journal lines, including superseded records."""
        return self._entries

    @property
    def head_hash(self) -> str:
        """entry_hash of the last line, or GENESIS_HASH for an empty journal."""
        return self._head_hash

    def get_stats(self) -> dict:
        stats = super().get_stats()
        stats["journal_entries"] = self._entries
        stats["head_hash"]       = self._head_hash
        return stats

    # ── Disk I/O ──────────────────────────────────────────────

    def _append(self, entry: JournalEntry) -> None:
        """Append one line durably, or raise without touching memory."""
        try:
            self.journal_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.journal_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry.to_dict(), ensure_ascii=False) + "\n")
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            raise StoreError(
                f"Failed to write journal entry: {e}",
                {"path": str(self.journal_path), "index": entry.index},
            ) from e

    def _load(self) -> None:
        """Replay the journal, verifying the hash chain."""
        claims:    Dict[str, Claim] = {}
        expected:  str              = GENESIS_HASH
        index:     int              = 0

        try:
            with open(self.journal_path, "r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, 1):
                    line = line.strip()
                    if not line:
                        continue

                    try:
                        entry = JournalEntry.from_dict(json.loads(line))
                    except (json.JSONDecodeError, KeyError, TypeError) as e:
                        raise StoreError(f"Invalid journal line {line_num}: {e}") from e

                    if entry.index != index:
                        raise StoreError(
                            f"Index gap at line {line_num}: expected {index}, got {entry.index}"
                        )
                    if entry.previous_hash != expected:
                        raise StoreError(
                            f"Chain break at line {line_num}: "
                            f"expected {expected}, got {entry.previous_hash}"
                        )
                    try:
                        computed = entry.compute_hash()
                    except UnicodeEncodeError as e:
                        raise StoreError(f"Unhashable entry at line {line_num}: {e}") from e
                    if computed != entry.entry_hash:
                        raise StoreError(f"Entry hash mismatch at line {line_num}")

                    try:
                        claims[entry.claim_id] = entry.claim()
                    except (CodecError, ValueError, TypeError) as e:
                        raise StoreError(f"Undecodable claim record at line {line_num}: {e}") from e

                    expected  = entry.entry_hash
                    index    += 1
        except OSError as e:
            raise StoreError(f"Failed to load journal: {e}") from e

        self._claims    = claims
        self._entries   = index
        self._head_hash = expected
        logger.debug(
            "Replayed %d journal entries (%d claims) from %s",
            index, len(claims), self.journal_path,
        )

    def __repr__(self) -> str:
        return (
            f"JsonlClaimStore(path={str(self.journal_path)!r}, "
            f"claims={len(self._claims)}, entries={self._entries})"
        )
