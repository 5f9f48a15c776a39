"""YAML output for escrow vector files.

Wei amounts routinely exceed 64 bits (100 ether is already past u64), so
integers above the u64 range are written as quoted decimal strings and
stay exact for readers that parse YAML integers into 64-bit types.
"""

from __future__ import annotations

from pathlib import Path

import yaml

U64_MAX = (1 << 64) - 1


class VectorDumper(yaml.SafeDumper):
    pass


def _str_representer(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    return dumper.represent_scalar("tag:yaml.org,2002:str", data, style=None)


def _int_representer(dumper: yaml.SafeDumper, data: int) -> yaml.ScalarNode:
    if data <= U64_MAX:
        return dumper.represent_int(data)
    return dumper.represent_scalar("tag:yaml.org,2002:str", str(data), style="'")


VectorDumper.add_representer(str, _str_representer)
VectorDumper.add_representer(int, _int_representer)


def dump_yaml(data: dict) -> str:
    return yaml.dump(data, Dumper=VectorDumper, sort_keys=False, width=4096)


def write_yaml(path: Path, data: dict) -> None:
    path.write_text(dump_yaml(data))
