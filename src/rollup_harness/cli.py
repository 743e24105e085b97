"""Command-line balance inspection across both layers."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Optional, Tuple

import click

from .config import HarnessConfig
from .constants import ETH_ADDRESS
from .errors import HarnessError
from .oracle import BalanceOracle
from .rpc import JsonRpcProvider
from .types import BalanceKey, BalanceSnapshot, Layer

logger = logging.getLogger(__name__)


async def read_balances(
    config: HarnessConfig, addresses: Tuple[str, ...], token: str
) -> BalanceSnapshot:
    l1 = JsonRpcProvider(config.endpoint(Layer.L1), Layer.L1, config.request_timeout)
    l2 = JsonRpcProvider(config.endpoint(Layer.L2), Layer.L2, config.request_timeout)
    async with l1, l2:
        oracle = BalanceOracle({Layer.L1: l1, Layer.L2: l2})
        keys = [
            BalanceKey(address, layer, token)
            for address in addresses
            for layer in (Layer.L1, Layer.L2)
        ]
        return await oracle.snapshot(keys)


@click.group()
def main() -> None:
    """Inspect rollup and base-layer state used by the verification harness."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


@main.command()
@click.argument("addresses", nargs=-1, required=True)
@click.option("--token", default=ETH_ADDRESS, show_default=True, help="Token address")
@click.option("--config", "config_path", default=None, help="YAML configuration file")
@click.option("--l1-rpc", default=None, help="L1 RPC endpoint URL")
@click.option("--l2-rpc", default=None, help="L2 RPC endpoint URL")
@click.option("--verbose", is_flag=True, help="Enable verbose output")
def balances(
    addresses: Tuple[str, ...],
    token: str,
    config_path: Optional[str],
    l1_rpc: Optional[str],
    l2_rpc: Optional[str],
    verbose: bool,
) -> None:
    """Print L1 and L2 balances of ADDRESSES."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        config = HarnessConfig.from_yaml(config_path) if config_path else HarnessConfig.from_env()
        if l1_rpc:
            config.l1_rpc = l1_rpc
        if l2_rpc:
            config.l2_rpc = l2_rpc
        snapshot = asyncio.run(read_balances(config, addresses, token))
    except HarnessError as exc:
        logger.error(str(exc))
        sys.exit(1)

    for key, value in snapshot.items():
        click.echo(f"{key.address}  {key.layer.name}  {value}")


if __name__ == "__main__":
    main()
