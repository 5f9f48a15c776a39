"""Command line entry points."""

from __future__ import annotations

import json

import yaml
from click.testing import CliRunner

from escrow_spec import cli
from escrow_spec.client.history import AgreementView
from escrow_spec.config import WEI_PER_ETHER
from escrow_spec.state_digest import compute_state_digest
from escrow_spec.types import ChainState, EscrowStatus
from tools.fixtures_io import state_to_json

VIEWS = [
    AgreementView(1, "0x" + "11" * 20, "0x" + "22" * 20, "0x" + "33" * 20, EscrowStatus.OPEN),
    AgreementView(0, "0x" + "11" * 20, "0x" + "22" * 20, "0x" + "33" * 20, EscrowStatus.REVOKED, WEI_PER_ETHER),
]


def _fake_loader(seen: list):
    async def load(source):
        seen.append(source.config)
        return VIEWS

    return load


def test_digest_prints_every_case(tmp_path) -> None:
    post = state_to_json(ChainState())
    fixture = tmp_path / "cases.json"
    fixture.write_text(
        json.dumps({"cases": [{"name": "empty", "expected": {"ok": True, "post_state": post}}]})
    )

    result = CliRunner().invoke(cli.main, ["digest", str(fixture)])

    assert result.exit_code == 0
    assert result.output.strip() == f"empty: {compute_state_digest(post)}"


def test_digest_without_cases_fails(tmp_path) -> None:
    fixture = tmp_path / "vectors.json"
    fixture.write_text(json.dumps({"test_vectors": []}))
    result = CliRunner().invoke(cli.main, ["digest", str(fixture)])
    assert result.exit_code == 1


def test_agreements_text(monkeypatch) -> None:
    seen: list = []
    monkeypatch.setattr(cli, "load_rpc_agreements", _fake_loader(seen))

    result = CliRunner().invoke(
        cli.main, ["agreements", "--rpc-url", "http://node:8545", "--from-block", "0x10"]
    )

    assert result.exit_code == 0
    assert "ID 1  [open]" in result.output
    assert "ID 0  [revoked]  1.0 ETH" in result.output
    assert result.output.index("ID 1") < result.output.index("ID 0")
    assert seen[0].rpc_url == "http://node:8545"
    assert seen[0].from_block == 16


def test_agreements_yaml(monkeypatch) -> None:
    monkeypatch.setattr(cli, "load_rpc_agreements", _fake_loader([]))
    result = CliRunner().invoke(cli.main, ["agreements", "--yaml"])

    assert result.exit_code == 0
    data = yaml.safe_load(result.output)
    assert [row["id"] for row in data] == [1, 0]
    assert data[1]["status"] == "revoked"
    assert data[1]["locked_amount"] == WEI_PER_ETHER


def test_agreements_unreachable_node_exits_nonzero() -> None:
    result = CliRunner().invoke(cli.main, ["agreements", "--rpc-url", "http://127.0.0.1:1/"])
    assert result.exit_code == 1
