#!/usr/bin/env python3
"""Convert fixtures into YAML vectors for other implementations.

State cases become vectors carrying the expected error code and the BLAKE3
state digest of the post state; pre-built `test_vectors` files are mirrored.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT / "tools"))

from escrow_spec.errors import ErrorCode  # noqa: E402
from escrow_spec.state_digest import compute_state_digest  # noqa: E402
from yaml_dump import write_yaml  # noqa: E402


def _map_error_code(name: str | None) -> int:
    if not name:
        return int(ErrorCode.SUCCESS)
    try:
        return int(ErrorCode[name])
    except KeyError:
        return int(ErrorCode.UNKNOWN)


def case_to_vector(case: dict[str, Any]) -> dict[str, Any]:
    expected = case.get("expected", {})
    post_state = expected.get("post_state")
    return {
        "name": case.get("name", ""),
        "pre_state": case.get("pre_state"),
        "input": {
            "kind": "block" if "txs" in case else "tx",
            "tx": case.get("tx"),
            "txs": case.get("txs"),
        },
        "expected": {
            "success": bool(expected.get("ok", False)),
            "error_code": _map_error_code(expected.get("error")),
            "state_digest": compute_state_digest(post_state) if post_state else "",
            "post_state": post_state,
        },
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Convert fixtures to vectors")
    parser.add_argument("--fixtures", default=str(ROOT / "fixtures"))
    parser.add_argument("--vectors", default=str(ROOT / "vectors"))
    args = parser.parse_args()

    fixtures = Path(args.fixtures).resolve()
    vectors = Path(args.vectors).resolve()

    if not fixtures.exists():
        raise SystemExit(f"fixtures dir not found: {fixtures}")

    count = 0
    for path in sorted(fixtures.rglob("*.json")):
        data = json.loads(path.read_text())
        dest = (vectors / path.relative_to(fixtures)).with_suffix(".yaml")
        dest.parent.mkdir(parents=True, exist_ok=True)

        if isinstance(data, dict) and isinstance(data.get("cases"), list):
            write_yaml(dest, {"test_vectors": [case_to_vector(c) for c in data["cases"]]})
        elif isinstance(data, dict) and isinstance(data.get("test_vectors"), list):
            write_yaml(dest, data)
        else:
            continue
        count += 1

    print(f"Written {count} vector files into {vectors}")


if __name__ == "__main__":
    main()
