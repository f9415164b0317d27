"""
tests/test_cli.py

claimpay CLI: exit codes and output formats.

    0  success
    1  claim outcome error
    2  usage / infrastructure error
"""

import json

import pytest
from click.testing import CliRunner

from claimpay.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def store(tmp_path):
    return str(tmp_path / "claims.jsonl")


def last_json(result):
    return json.loads(result.output.strip().splitlines()[-1])


def keygen(runner, tmp_path, name="alice.pem"):
    key_path = str(tmp_path / name)
    result   = runner.invoke(cli, ["keygen", key_path])
    assert result.exit_code == 0, result.output
    return key_path, result.output.strip().splitlines()[-1]


def sign(runner, key_path, claim_id):
    result = runner.invoke(cli, ["sign", claim_id, "--key", key_path])
    assert result.exit_code == 0, result.output
    return result.output.strip().splitlines()[-1]


class TestKeyCommands:

    def test_keygen_prints_compressed_key(self, runner, tmp_path):
        key_path, public_key = keygen(runner, tmp_path)
        assert len(public_key) == 66
        assert public_key[:2] in ("02", "03")
        assert (tmp_path / "alice.pem").exists()

    def test_keygen_refuses_overwrite(self, runner, tmp_path):
        key_path, _ = keygen(runner, tmp_path)
        result = runner.invoke(cli, ["keygen", key_path])
        assert result.exit_code == 2

    def test_sign_prints_65_byte_signature(self, runner, tmp_path):
        key_path, _ = keygen(runner, tmp_path)
        assert len(bytes.fromhex(sign(runner, key_path, "claim-1"))) == 65

    def test_sign_missing_key(self, runner, tmp_path):
        result = runner.invoke(cli, ["sign", "claim-1", "--key", str(tmp_path / "none.pem")])
        assert result.exit_code == 2


class TestClaimCommands:

    def test_full_flow(self, runner, tmp_path, store):
        key_path, public_key = keygen(runner, tmp_path)

        created = runner.invoke(
            cli, ["--store", store, "create", "claim-1", public_key, "--value", "100"]
        )
        assert created.exit_code == 0, created.output
        assert "Created claim 'claim-1'" in created.output

        signature = sign(runner, key_path, "claim-1")
        redeemed  = runner.invoke(
            cli, ["--store", store, "redeem", "claim-1", signature, "--caller", "bob"]
        )
        assert redeemed.exit_code == 0, redeemed.output
        assert "paid 100 to bob" in redeemed.output

        again = runner.invoke(
            cli, ["--store", store, "redeem", "claim-1", signature, "--caller", "bob"]
        )
        assert again.exit_code == 1
        assert "AlreadyRedeemed" in again.output

        shown = runner.invoke(cli, ["--store", store, "show", "claim-1", "--format", "json"])
        assert shown.exit_code == 0
        body = last_json(shown)
        assert body["redeemed"] is True
        assert body["value"] == 100
        assert body["public_key"] == public_key

    def test_duplicate_create_json(self, runner, tmp_path, store):
        _, public_key = keygen(runner, tmp_path)
        args = ["--store", store, "create", "claim-1", public_key, "--value", "5", "--format", "json"]

        assert runner.invoke(cli, args).exit_code == 0
        second = runner.invoke(cli, args)
        assert second.exit_code == 1
        assert last_json(second) == {
            "ok":       False,
            "claim_id": "claim-1",
            "error":    "AlreadyExists",
            "value":    5,
        }

    def test_wrong_key_signature(self, runner, tmp_path, store):
        _, public_key  = keygen(runner, tmp_path, "alice.pem")
        other_path, _  = keygen(runner, tmp_path, "mallory.pem")

        runner.invoke(cli, ["--store", store, "create", "claim-2", public_key, "--value", "50"])
        result = runner.invoke(
            cli,
            ["--store", store, "redeem", "claim-2", sign(runner, other_path, "claim-2"),
             "--caller", "mallory"],
        )
        assert result.exit_code == 1
        assert "InvalidSignature" in result.output

    def test_bad_hex_is_usage_error(self, runner, store):
        result = runner.invoke(cli, ["--store", store, "create", "claim-1", "zz"])
        assert result.exit_code == 2

    def test_wrong_length_key_is_usage_error(self, runner, store):
        result = runner.invoke(cli, ["--store", store, "create", "claim-1", "02" * 10])
        assert result.exit_code == 2

    def test_show_missing(self, runner, store):
        result = runner.invoke(cli, ["--store", store, "show", "ghost"])
        assert result.exit_code == 1
        assert "NotFound" in result.output

    def test_audit(self, runner, tmp_path, store):
        key_path, public_key = keygen(runner, tmp_path)
        runner.invoke(cli, ["--store", store, "create", "a", public_key, "--value", "10"])
        runner.invoke(cli, ["--store", store, "create", "b", public_key, "--value", "20"])
        runner.invoke(
            cli, ["--store", store, "redeem", "a", sign(runner, key_path, "a"), "--caller", "bob"]
        )

        result = runner.invoke(cli, ["--store", store, "audit", "--format", "json"])
        assert result.exit_code == 0
        body = last_json(result)
        assert body["total_claims"] == 2
        assert body["redeemed_claims"] == 1
        assert body["locked_value"] == 20
        assert body["journal_entries"] == 3

    def test_corrupt_store_is_infrastructure_error(self, runner, tmp_path):
        path = tmp_path / "claims.jsonl"
        path.write_text("{not json\n", encoding="utf-8")

        result = runner.invoke(cli, ["--store", str(path), "audit"])
        assert result.exit_code == 2


class TestConfig:

    def test_store_path_from_yaml(self, runner, tmp_path):
        store_path  = tmp_path / "from-config.jsonl"
        config_path = tmp_path / "claimpay.yaml"
        config_path.write_text(f"store_path: {store_path}\nlog_level: ERROR\n", encoding="utf-8")
        _, public_key = keygen(runner, tmp_path)

        result = runner.invoke(
            cli, ["--config", str(config_path), "create", "claim-1", public_key]
        )
        assert result.exit_code == 0, result.output
        assert store_path.exists()

    def test_store_path_from_environment(self, runner, tmp_path):
        store_path    = tmp_path / "from-env.jsonl"
        _, public_key = keygen(runner, tmp_path)

        result = runner.invoke(
            cli, ["create", "claim-1", public_key], env={"CLAIMPAY_STORE": str(store_path)}
        )
        assert result.exit_code == 0, result.output
        assert store_path.exists()

    def test_unknown_config_key(self, runner, tmp_path):
        config_path = tmp_path / "claimpay.yaml"
        config_path.write_text("stor_path: typo.jsonl\n", encoding="utf-8")

        result = runner.invoke(cli, ["--config", str(config_path), "audit"])
        assert result.exit_code == 2
