"""
claimpay keygen / claimpay sign — client-side helpers.

These never touch the claim store. They produce what create and redeem
consume: a compressed public key and a 65-byte recoverable signature.
"""

import sys
from pathlib import Path

import click

from claimpay.core.codec import claim_digest
from claimpay.core.crypto import Secp256k1KeyManager
from claimpay.core.exceptions import KeyFileError


@click.command(name="keygen")
@click.argument("key_path", type=click.Path(dir_okay=False))
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing key file.")
def keygen_command(key_path: str, force: bool) -> None:
    """
    Generate a secp256k1 key, save it as PEM, print the compressed public key.
    """
    path = Path(key_path)
    if path.exists() and not force:
        click.echo(f"❌ Error: {path} exists (use --force to overwrite)", err=True)
        sys.exit(2)

    key = Secp256k1KeyManager.generate()
    try:
        key.save(path)
    except KeyFileError as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(2)

    click.echo(key.public_key_hex)


@click.command(name="sign")
@click.argument("claim_id")
@click.option(
    "--key", "key_path",
    type=click.Path(dir_okay=False),
    required=True,
    metavar="PATH",
    help="PEM private key written by `claimpay keygen`.",
)
@click.option("--show-digest", is_flag=True, default=False, help="Also print the signed digest.")
def sign_command(claim_id: str, key_path: str, show_digest: bool) -> None:
    """
    Print the hex signature that redeems CLAIM_ID against KEY.
    """
    try:
        key = Secp256k1KeyManager.from_file(Path(key_path))
    except (FileNotFoundError, KeyFileError) as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(2)

    if show_digest:
        click.echo(f"digest     {claim_digest(claim_id).hex()}")
        click.echo(f"signature  {key.sign_claim(claim_id).hex()}")
    else:
        click.echo(key.sign_claim(claim_id).hex())
