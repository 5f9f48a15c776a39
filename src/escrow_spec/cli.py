"""
Escrow registry command line.

`agreements` replays registry notifications from a JSON-RPC endpoint;
`digest` recomputes state digests for a fixture file.
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
import yaml

from .client.config import ClientConfig
from .client.history import AgreementView, load_rpc_agreements
from .client.requests import format_ether
from .client.rpc import RpcLogSource
from .errors import ClientError, SpecError
from .state_digest import compute_state_digest

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


def _print_text(views: list[AgreementView]) -> None:
    for view in views:
        amount = "" if view.locked_amount is None else f"  {format_ether(view.locked_amount)} ETH"
        click.echo(f"ID {view.escrow_id}  [{view.status.value}]{amount}")
        click.echo(f"  depositor:   {view.depositor}")
        click.echo(f"  beneficiary: {view.beneficiary}")
        click.echo(f"  arbiter:     {view.arbiter}")


@click.group()
@click.option("--verbose", is_flag=True, help="Enable verbose output")
def main(verbose: bool) -> None:
    """Escrow registry tools."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@main.command()
@click.option("--rpc-url", default=None, help="JSON-RPC endpoint URL")
@click.option("--address", default=None, help="Registry contract address")
@click.option("--from-block", default=None, help="First block to scan (int or hex)")
@click.option("--yaml", "as_yaml", is_flag=True, help="Print YAML instead of text")
def agreements(
    rpc_url: Optional[str],
    address: Optional[str],
    from_block: Optional[str],
    as_yaml: bool,
) -> None:
    """List agreements by replaying registry notifications."""

    # Load config from environment, then override with CLI args
    config = ClientConfig.from_env()
    if rpc_url:
        config.rpc_url = rpc_url
    if address:
        config.registry_address = address
    if from_block:
        config.from_block = int(from_block, 0)
    if config.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    async def run() -> list[AgreementView]:
        async with RpcLogSource(config) as source:
            return await load_rpc_agreements(source)

    try:
        views = asyncio.run(run())
    except (ClientError, SpecError) as e:
        logger.error(f"Could not load agreements: {e}")
        sys.exit(1)

    if as_yaml:
        click.echo(yaml.safe_dump([v.to_dict() for v in views], sort_keys=False), nl=False)
    else:
        _print_text(views)


@main.command()
@click.argument("fixture", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def digest(fixture: Path) -> None:
    """Print the post-state digest of every case in a fixture file."""
    data = json.loads(fixture.read_text())
    cases = data.get("cases", [])
    if not cases:
        logger.error(f"No cases in {fixture}")
        sys.exit(1)

    for case in cases:
        post_state = case["expected"]["post_state"]
        click.echo(f"{case['name']}: {compute_state_digest(post_state)}")


if __name__ == "__main__":
    main()
