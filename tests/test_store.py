"""
tests/test_store.py

Claim stores: the in-memory stand-in and the hash-chained JSONL journal.

Journal laws:
    - state survives reopen (last record per id wins)
    - every put is one line, superseded lines stay
    - editing, dropping or truncating a line is detected on reopen
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from claimpay import (
    CallContext,
    Claim,
    ClaimContract,
    ClaimError,
    InMemoryClaimStore,
    InMemoryCustody,
    JsonlClaimStore,
    Secp256k1KeyManager,
    StoreError,
)
from claimpay.store import GENESIS_HASH, JournalEntry
from claimpay.store.journal import entry_timestamp


PK_A = b"\x02" + b"\xaa" * 32
PK_B = b"\x03" + b"\xbb" * 32


@pytest.fixture
def journal(tmp_path):
    return tmp_path / "claims.jsonl"


def read_lines(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def write_lines(path, entries):
    path.write_text("".join(json.dumps(e) + "\n" for e in entries), encoding="utf-8")


class TestInMemoryStore:

    def test_basic_mapping(self):
        store = InMemoryClaimStore()
        assert not store.exists("a")
        assert store.get("a") is None

        store.put("a", Claim(public_key=PK_A, value=10))

        assert store.exists("a")
        assert "a" in store
        assert len(store) == 1
        assert store.get("a").value == 10

    def test_stats_and_locked_value(self):
        store = InMemoryClaimStore()
        store.put("a", Claim(public_key=PK_A, value=10))
        store.put("b", Claim(public_key=PK_B, value=5, redeemed=True))
        store.put("c", Claim(public_key=PK_B, value=1))

        assert store.total_unredeemed() == 11
        assert store.get_stats() == {
            "total_claims":    3,
            "redeemed_claims": 1,
            "open_claims":     2,
            "locked_value":    11,
        }


class TestJournal:

    def test_new_journal_is_empty(self, journal):
        store = JsonlClaimStore(journal)
        assert len(store) == 0
        assert store.entry_count == 0
        assert store.head_hash == GENESIS_HASH
        assert not journal.exists()

    def test_creates_parent_directory(self, tmp_path):
        path  = tmp_path / "nested" / "dir" / "claims.jsonl"
        store = JsonlClaimStore(path)
        store.put("a", Claim(public_key=PK_A, value=1))
        assert path.exists()

    def test_state_survives_reopen(self, journal):
        store = JsonlClaimStore(journal)
        store.put("a", Claim(public_key=PK_A, value=10))
        store.put("b", Claim(public_key=PK_B, value=20))
        store.put("a", Claim(public_key=PK_A, value=10, redeemed=True))

        reopened = JsonlClaimStore(journal)
        assert reopened.get("a") == Claim(public_key=PK_A, value=10, redeemed=True)
        assert reopened.get("b") == Claim(public_key=PK_B, value=20)
        assert len(reopened) == 2
        assert reopened.entry_count == 3
        assert reopened.head_hash == store.head_hash

    def test_lines_are_chained(self, journal):
        store = JsonlClaimStore(journal)
        store.put("a", Claim(public_key=PK_A, value=1))
        store.put("b", Claim(public_key=PK_B, value=2))

        first, second = read_lines(journal)
        assert first["index"] == 0
        assert first["previous_hash"] == GENESIS_HASH
        assert second["previous_hash"] == first["entry_hash"]
        assert second["entry_hash"] == store.head_hash
        assert first["record"] == Claim(public_key=PK_A, value=1).to_scale().hex()

    def test_edited_record_detected(self, journal):
        store = JsonlClaimStore(journal)
        store.put("a", Claim(public_key=PK_A, value=1))

        entries = read_lines(journal)
        entries[0]["record"] = Claim(public_key=PK_A, value=1_000_000).to_scale().hex()
        write_lines(journal, entries)

        with pytest.raises(StoreError, match="hash mismatch"):
            JsonlClaimStore(journal)

    def test_dropped_line_detected(self, journal):
        store = JsonlClaimStore(journal)
        for i in range(3):
            store.put(f"c-{i}", Claim(public_key=PK_A, value=i))

        entries = read_lines(journal)
        write_lines(journal, [entries[0], entries[2]])

        with pytest.raises(StoreError):
            JsonlClaimStore(journal)

    def test_truncated_line_detected(self, journal):
        store = JsonlClaimStore(journal)
        store.put("a", Claim(public_key=PK_A, value=1))

        text = journal.read_text(encoding="utf-8")
        journal.write_text(text[: len(text) // 2], encoding="utf-8")

        with pytest.raises(StoreError, match="Invalid journal line") as excinfo:
            JsonlClaimStore(journal)
        assert isinstance(excinfo.value.__cause__, json.JSONDecodeError)

    def test_undecodable_record_keeps_cause(self, journal):
        store = JsonlClaimStore(journal)
        store.put("a", Claim(public_key=PK_A, value=1))

        entries = read_lines(journal)
        entries[0]["record"] = "not-hex"
        entries[0]["entry_hash"] = JournalEntry.from_dict(entries[0]).compute_hash()
        write_lines(journal, entries)

        with pytest.raises(StoreError, match="Undecodable claim record") as excinfo:
            JsonlClaimStore(journal)
        assert isinstance(excinfo.value.__cause__, ValueError)

    def test_lone_surrogate_claim_id_on_disk_detected(self, journal):
        store = JsonlClaimStore(journal)
        store.put("a", Claim(public_key=PK_A, value=1))

        entries = read_lines(journal)
        entries[0]["claim_id"] = "a-\ud800"
        write_lines(journal, entries)

        with pytest.raises(StoreError, match="Unhashable entry"):
            JsonlClaimStore(journal)

    def test_entry_timestamp_format(self):
        moment = datetime(2024, 1, 2, 3, 4, 5, 678901, tzinfo=timezone.utc)
        assert entry_timestamp(moment) == "2024-01-02T03:04:05.678Z"

    def test_entry_timestamp_converts_to_utc(self):
        moment = datetime(2024, 1, 2, 5, 4, 5, tzinfo=timezone(timedelta(hours=2)))
        assert entry_timestamp(moment) == "2024-01-02T03:04:05.000Z"

    def test_lines_carry_millisecond_timestamps(self, journal):
        JsonlClaimStore(journal).put("a", Claim(public_key=PK_A, value=1))
        stamp = read_lines(journal)[0]["timestamp"]
        assert len(stamp) == 24
        assert stamp.endswith("Z")
        assert stamp[19] == "."

    def test_stats_include_journal(self, journal):
        store = JsonlClaimStore(journal)
        store.put("a", Claim(public_key=PK_A, value=4))
        stats = store.get_stats()

        assert stats["journal_entries"] == 1
        assert stats["head_hash"] == store.head_hash
        assert stats["locked_value"] == 4


class TestContractOnJournal:

    def test_redeemed_flag_persists(self, journal):
        key      = Secp256k1KeyManager.generate()
        contract = ClaimContract.new(store=JsonlClaimStore(journal))

        assert contract.create(CallContext("alice", 100), "claim-1", key.public_key)
        assert contract.redeem(CallContext("bob"), "claim-1", key.sign_claim("claim-1"))

        reopened = ClaimContract.new(store=JsonlClaimStore(journal))
        assert reopened.get_claim("claim-1").redeemed is True
        again = reopened.redeem(CallContext("bob"), "claim-1", key.sign_claim("claim-1"))
        assert again.error is ClaimError.ALREADY_REDEEMED

    def test_failed_transfer_rolls_back_on_disk(self, journal):
        key      = Secp256k1KeyManager.generate()
        contract = ClaimContract.new(
            store=   JsonlClaimStore(journal),
            custody= InMemoryCustody(rejecting={"vault"}),
        )
        assert contract.create(CallContext("alice", 100), "claim-1", key.public_key)

        result = contract.redeem(CallContext("vault"), "claim-1", key.sign_claim("claim-1"))
        assert result.error is ClaimError.TRANSFER_FAILED

        reopened = JsonlClaimStore(journal)
        assert reopened.get("claim-1").redeemed is False
        assert reopened.entry_count == 3
