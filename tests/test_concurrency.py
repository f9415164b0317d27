"""
tests/test_concurrency.py

Concurrency safety test for ClaimContract.
Competing threads racing on one claim id must produce exactly one winner.

Run:
    pytest tests/test_concurrency.py -v --tb=short
"""

import threading

import pytest

from claimpay import (
    CallContext,
    ClaimContract,
    ClaimError,
    InMemoryCustody,
    JsonlClaimStore,
    Secp256k1KeyManager,
)


THREADS = 16


def _race(target, n=THREADS):
    """Start n threads behind a barrier so they hit the contract together."""
    barrier = threading.Barrier(n)
    results = [None] * n
    errors  = []

    def run(i):
        try:
            barrier.wait()
            results[i] = target(i)
        except Exception as e:
            errors.append(repr(e))

    threads = [threading.Thread(target=run, args=(i,)) for i in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == [], f"Concurrent calls raised exceptions: {errors}"
    return results


class TestConcurrency:

    @pytest.mark.parametrize("durable", [False, True])
    def test_concurrent_redeem_pays_once(self, tmp_path, durable):
        """Many relayers submit the same valid signature at once."""
        key      = Secp256k1KeyManager.generate()
        custody  = InMemoryCustody()
        store    = JsonlClaimStore(tmp_path / "claims.jsonl") if durable else None
        contract = ClaimContract.new(store=store, custody=custody)
        sig      = key.sign_claim("claim-1")

        assert contract.create(CallContext("alice", 100), "claim-1", key.public_key)

        results = _race(
            lambda i: contract.redeem(CallContext(f"relayer-{i}"), "claim-1", sig)
        )

        winners = [r for r in results if r.ok]
        losers  = [r for r in results if not r.ok]
        assert len(winners) == 1
        assert {r.error for r in losers} == {ClaimError.ALREADY_REDEEMED}
        assert len(custody.transfers) == 1
        assert sum(custody.payouts.values()) == 100
        assert custody.balance == 0

    def test_concurrent_create_single_winner(self):
        """Many payers race to create the same id; one deposit is kept."""
        custody  = InMemoryCustody()
        contract = ClaimContract.new(custody=custody)
        keys     = [Secp256k1KeyManager.generate() for _ in range(THREADS)]

        results = _race(
            lambda i: contract.create(
                CallContext(f"payer-{i}", i + 1), "claim-1", keys[i].public_key
            )
        )

        winners = [i for i, r in enumerate(results) if r.ok]
        assert len(winners) == 1
        assert all(
            r.error is ClaimError.ALREADY_EXISTS
            for i, r in enumerate(results) if i != winners[0]
        )

        stored = contract.get_claim("claim-1")
        assert stored.public_key == keys[winners[0]].public_key
        assert stored.value == winners[0] + 1
        assert custody.balance == stored.value
