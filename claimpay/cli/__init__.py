"""
claimpay/cli/__init__.py

ClaimPay CLI — root Click command group.

This file is the sole entry point for the `claimpay` terminal command.
It is registered in pyproject.toml as:

    [project.scripts]
    claimpay = "claimpay.cli:cli"

Exit codes (shared by every command):
    0  Success
    1  Claim outcome error (AlreadyExists, NotFound, InvalidSignature, ...)
    2  Usage or infrastructure error (bad hex, unreadable store, bad config)
"""

import sys
from pathlib import Path
from typing import Optional

import click
import yaml

from claimpay.cli.claims import audit_command, create_command, redeem_command, show_command
from claimpay.cli.keys import keygen_command, sign_command
from claimpay.config import ClaimPayConfig
from claimpay.core.exceptions import ValidationError


@click.group()
@click.version_option(package_name="claimpay")
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    metavar="PATH",
    help="YAML config file.",
)
@click.option(
    "--store", "store_path",
    type=click.Path(dir_okay=False),
    default=None,
    metavar="PATH",
    help="Claim journal (JSONL). Overrides config and CLAIMPAY_STORE.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Logging verbosity.",
)
@click.pass_context
def cli(
    ctx:         click.Context,
    config_path: Optional[str],
    store_path:  Optional[str],
    log_level:   Optional[str],
) -> None:
    """
    ClaimPay — bearer claims redeemable by secp256k1 signature.

    \b
    Commands:
      keygen    Write a new secp256k1 key, print its public key.
      sign      Sign a claim id with a key file.
      create    Deposit value under a claim id bound to a public key.
      redeem    Collect a claim with a signature.
      show      Print one claim.
      audit     Claim counts, locked value, journal head.

    \b
    Quick start:
      claimpay keygen alice.pem
      claimpay create claim-1 <PUBLIC_KEY_HEX> --value 100
      claimpay sign claim-1 --key alice.pem
      claimpay redeem claim-1 <SIGNATURE_HEX> --caller bob
    """
    try:
        config = ClaimPayConfig.load(Path(config_path) if config_path else None)
    except (ValidationError, OSError, yaml.YAMLError) as e:
        click.echo(f"❌ Error: invalid configuration: {e}", err=True)
        sys.exit(2)

    if store_path:
        config.store_path = store_path
    if log_level:
        config.log_level = log_level.upper()

    config.configure_logging()
    ctx.obj = config


cli.add_command(keygen_command)
cli.add_command(sign_command)
cli.add_command(create_command)
cli.add_command(redeem_command)
cli.add_command(show_command)
cli.add_command(audit_command)
