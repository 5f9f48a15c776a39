"""Pytest hooks to generate fixtures (EEST-style)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from escrow_spec.state_transition import TransitionResult, apply_block, apply_tx
from escrow_spec.types import ChainState, Transaction
from tools.fixtures_io import state_to_json, tx_to_json

_STATE_CASES: dict[str, list[dict[str, Any]]] = {}
_VECTOR_CASES: dict[str, list[dict[str, Any]]] = {}


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--output",
        action="store",
        default=None,
        help="Output directory for generated fixtures",
    )


def _expected(post_state: ChainState, result: TransitionResult) -> dict[str, Any]:
    return {
        "ok": result.ok,
        "error": result.error.code.name if result.error else None,
        "post_state": state_to_json(post_state),
    }


@pytest.fixture
def state_test_group() -> Callable[..., tuple[ChainState, TransitionResult]]:
    """Run a single tx, record the case under `rel_path`, hand back the outcome."""

    def _state_test_group(
        rel_path: str, name: str, pre_state: ChainState, tx: Transaction
    ) -> tuple[ChainState, TransitionResult]:
        post_state, result = apply_tx(pre_state, tx)
        _STATE_CASES.setdefault(rel_path, []).append(
            {
                "name": name,
                "pre_state": state_to_json(pre_state),
                "tx": tx_to_json(tx),
                "expected": _expected(post_state, result),
            }
        )
        return post_state, result

    return _state_test_group


@pytest.fixture
def block_test_group() -> Callable[..., tuple[ChainState, TransitionResult]]:
    """Run a block of txs atomically and record the case."""

    def _block_test_group(
        rel_path: str, name: str, pre_state: ChainState, txs: list[Transaction]
    ) -> tuple[ChainState, TransitionResult]:
        post_state, result = apply_block(pre_state, txs)
        _STATE_CASES.setdefault(rel_path, []).append(
            {
                "name": name,
                "pre_state": state_to_json(pre_state),
                "txs": [tx_to_json(tx) for tx in txs],
                "expected": _expected(post_state, result),
            }
        )
        return post_state, result

    return _block_test_group


@pytest.fixture
def vector_test_group() -> Callable[[str, dict[str, Any]], None]:
    """Collect pre-built test_vectors under a specific fixture path."""

    def _vector_test_group(rel_path: str, vector: dict[str, Any]) -> None:
        _VECTOR_CASES.setdefault(rel_path, []).append(vector)

    return _vector_test_group


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    output_dir = session.config.getoption("--output")
    if not output_dir:
        return

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    for rel_path, cases in _STATE_CASES.items():
        if not cases:
            continue
        target = out / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps({"cases": cases}, indent=2))

    for rel_path, vectors in _VECTOR_CASES.items():
        if not vectors:
            continue
        target = out / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps({"test_vectors": vectors}, indent=2))
