"""Fill escrow fixtures from the test suite, then replay them.

    python tools/fill.py [--output DIR] [--clean] [-k EXPR]

Cases recorded by `state_test_group`/`block_test_group` land under
`transactions/`, vectors under their own paths; the freshly written
`cases` files are replayed with `consume.check_dir` before returning.
"""

from __future__ import annotations

import argparse
import os
import shutil
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT / "tools"))

from consume import check_dir  # noqa: E402


def pytest_command(output: Path, select: str | None = None) -> list[str]:
    cmd = [sys.executable, "-m", "pytest", str(ROOT / "tests"), "-q", "--output", str(output)]
    if select:
        cmd += ["-k", select]
    return cmd


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Fill and replay escrow fixtures")
    parser.add_argument("--output", default=str(ROOT / "fixtures"))
    parser.add_argument("--clean", action="store_true", help="Remove the output dir first")
    parser.add_argument("-k", dest="select", default=None, help="pytest -k expression")
    args = parser.parse_args(argv)

    output = Path(args.output).resolve()
    if args.clean and output.exists():
        shutil.rmtree(output)

    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join([str(ROOT / "src"), str(ROOT)])
    cmd = pytest_command(output, args.select)
    print("Running:", " ".join(cmd))
    code = subprocess.call(cmd, env=env, cwd=str(ROOT))
    if code != 0:
        return code

    checked, failures = check_dir(output)
    for f in failures:
        print("FAIL", f)
    print(f"Replayed {checked} case files, {len(failures)} failures")
    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
