"""Consume fixtures and validate against the Python specs."""

from __future__ import annotations

import json
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT / "tools"))

from escrow_spec.state_digest import compute_state_digest  # noqa: E402
from escrow_spec.state_transition import apply_block, apply_tx  # noqa: E402
from fixtures_io import state_from_json, state_to_json, tx_from_json  # noqa: E402


def _compare(name: str, post_state, result, expected: dict) -> list[str]:
    if result.ok != expected["ok"]:
        return [f"{name}: ok_mismatch"]

    actual_err = result.error.code.name if result.error else None
    if actual_err != expected["error"]:
        return [f"{name}: error_mismatch"]

    actual_digest = compute_state_digest(state_to_json(post_state))
    if actual_digest != compute_state_digest(expected["post_state"]):
        return [f"{name}: state_digest_mismatch"]

    return []


def check_cases(path: Path) -> list[str]:
    failures: list[str] = []
    data = json.loads(path.read_text())

    for case in data.get("cases", []):
        pre_state = state_from_json(case["pre_state"])
        if "txs" in case:
            txs = [tx_from_json(t) for t in case["txs"]]
            post_state, result = apply_block(pre_state, txs)
        else:
            post_state, result = apply_tx(pre_state, tx_from_json(case["tx"]))
        failures.extend(_compare(case["name"], post_state, result, case["expected"]))

    return failures


def check_dir(fixtures: Path) -> tuple[int, list[str]]:
    """Replay every `cases` file under `fixtures`; vector files are skipped."""
    failures: list[str] = []
    checked = 0
    for path in sorted(fixtures.rglob("*.json")):
        if "cases" not in json.loads(path.read_text()):
            continue
        checked += 1
        failures.extend(check_cases(path))
    return checked, failures


def main() -> None:
    checked, failures = check_dir(ROOT / "fixtures")

    if failures:
        for f in failures:
            print("FAIL", f)
        raise SystemExit(1)

    print(f"All fixtures passed ({checked} files)")


if __name__ == "__main__":
    main()
