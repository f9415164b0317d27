"""
claimpay create / redeem / show / audit — operate on a claim journal.

Each invocation opens the journal, runs one call, and exits. Custody is
process-local: it is opened with the journal's locked value, so a payout
here is reported, not wired anywhere.

Output:
    --format human   (default) one line, ✅ / ❌
    --format json    one JSON object on stdout
"""

import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click

from claimpay.config import ClaimPayConfig
from claimpay.contract import ClaimContract
from claimpay.core.codec import U128_MAX
from claimpay.core.exceptions import StoreError, ValidationError
from claimpay.core.models import ClaimResult
from claimpay.runtime.context import CallContext
from claimpay.runtime.custody import InMemoryCustody
from claimpay.store.journal import JsonlClaimStore


_FORMAT_OPTION = click.option(
    "--format", "fmt",
    type=click.Choice(["human", "json"], case_sensitive=False),
    default="human",
    show_default=True,
    help="Output format.",
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _fail(message: str, fmt: str, code: int = 2) -> None:
    if fmt == "json":
        click.echo(json.dumps({"ok": False, "error": message}))
    else:
        click.echo(f"❌ Error: {message}", err=True)
    sys.exit(code)


def _parse_hex(label: str, value: str, fmt: str) -> bytes:
    text = value[2:] if value.lower().startswith("0x") else value
    try:
        return bytes.fromhex(text)
    except ValueError:
        _fail(f"{label} is not valid hex", fmt)


def _open_store(config: ClaimPayConfig, fmt: str) -> JsonlClaimStore:
    try:
        return JsonlClaimStore(Path(config.store_path))
    except StoreError as e:
        _fail(f"cannot open store {config.store_path}: {e}", fmt)


def _open_contract(config: ClaimPayConfig, fmt: str) -> ClaimContract:
    store = _open_store(config, fmt)
    return ClaimContract(
        store=              store,
        custody=            InMemoryCustody(balance=store.total_unredeemed()),
        strict_recovery_id= config.strict_recovery_id,
    )


def _report(result: ClaimResult, fmt: str, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
    if fmt == "json":
        body = {
            "ok":       result.ok,
            "claim_id": result.claim_id,
            "error":    None if result.ok else result.error.value,
        }
        body.update(extra or {})
        click.echo(json.dumps(body))
    elif result.ok:
        click.echo(f"✅ {message}")
    else:
        retry = "  (safe to retry)" if result.error.retriable else ""
        click.echo(f"❌ {result.error.value}: claim '{result.claim_id}'{retry}")
    sys.exit(0 if result.ok else 1)


# ── Commands ──────────────────────────────────────────────────────────────────

@click.command(name="create")
@click.argument("claim_id")
@click.argument("public_key_hex")
@click.option(
    "--value",
    type=click.IntRange(min=0, max=U128_MAX),
    default=0,
    show_default=True,
    help="Deposit locked under the claim.",
)
@click.option("--caller", default="cli", show_default=True, help="Depositor identity.")
@_FORMAT_OPTION
@click.pass_obj
def create_command(
    config:         ClaimPayConfig,
    claim_id:       str,
    public_key_hex: str,
    value:          int,
    caller:         str,
    fmt:            str,
) -> None:
    """
    Deposit VALUE under CLAIM_ID, redeemable by PUBLIC_KEY_HEX (33 bytes, compressed).
    """
    public_key = _parse_hex("PUBLIC_KEY_HEX", public_key_hex, fmt)
    contract   = _open_contract(config, fmt)

    try:
        result = contract.create(CallContext(caller, value), claim_id, public_key)
    except (ValidationError, StoreError) as e:
        _fail(str(e), fmt)

    _report(result, fmt, f"Created claim '{claim_id}' (value {value})", {"value": value})


@click.command(name="redeem")
@click.argument("claim_id")
@click.argument("signature_hex")
@click.option("--caller", required=True, help="Recipient of the deposit.")
@_FORMAT_OPTION
@click.pass_obj
def redeem_command(
    config:        ClaimPayConfig,
    claim_id:      str,
    signature_hex: str,
    caller:        str,
    fmt:           str,
) -> None:
    """
    Collect CLAIM_ID with SIGNATURE_HEX (65 bytes, r || s || v). Pays CALLER.
    """
    signature = _parse_hex("SIGNATURE_HEX", signature_hex, fmt)
    contract  = _open_contract(config, fmt)

    try:
        result = contract.redeem(CallContext(caller), claim_id, signature)
    except (ValidationError, StoreError) as e:
        _fail(str(e), fmt)

    paid = contract.custody.payouts.get(caller, 0)
    _report(
        result, fmt,
        f"Redeemed claim '{claim_id}': paid {paid} to {caller}",
        {"paid": paid, "recipient": caller},
    )


@click.command(name="show")
@click.argument("claim_id")
@_FORMAT_OPTION
@click.pass_obj
def show_command(config: ClaimPayConfig, claim_id: str, fmt: str) -> None:
    """
    Print the stored record for CLAIM_ID. Exit 1 if there is none.
    """
    claim = _open_store(config, fmt).get(claim_id)

    if claim is None:
        if fmt == "json":
            click.echo(json.dumps({"ok": False, "claim_id": claim_id, "error": "NotFound"}))
        else:
            click.echo(f"❌ NotFound: claim '{claim_id}'")
        sys.exit(1)

    if fmt == "json":
        body = {"ok": True, "claim_id": claim_id}
        body.update(claim.to_dict())
        click.echo(json.dumps(body))
    else:
        click.echo(f"  {'Claim':<12}  {claim_id}")
        click.echo(f"  {'Public key':<12}  {claim.public_key.hex()}")
        click.echo(f"  {'Value':<12}  {claim.value}")
        click.echo(f"  {'Redeemed':<12}  {'yes' if claim.redeemed else 'no'}")


@click.command(name="audit")
@_FORMAT_OPTION
@click.pass_obj
def audit_command(config: ClaimPayConfig, fmt: str) -> None:
    """
    Replay the journal (hash chain checked) and print claim counts and locked value.
    """
    stats = _open_store(config, fmt).get_stats()

    if fmt == "json":
        body = {"ok": True, "store": config.store_path}
        body.update(stats)
        click.echo(json.dumps(body))
        return

    click.echo(f"  {'Store':<16}  {config.store_path}")
    click.echo(f"  {'Journal':<16}  ✅ intact, {stats['journal_entries']} entries")
    click.echo(f"  {'Head hash':<16}  {stats['head_hash']}")
    click.echo(f"  {'Claims':<16}  {stats['total_claims']} "
               f"({stats['open_claims']} open, {stats['redeemed_claims']} redeemed)")
    click.echo(f"  {'Locked value':<16}  {stats['locked_value']}")
