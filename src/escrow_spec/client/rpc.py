"""JSON-RPC reads against a deployed registry."""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Any, Optional, Union

import aiohttp

from ..config import EVENT_NAMES, GET_LOCKED_AMOUNT_SELECTOR
from ..encoding import Reader, log_from_rpc, u256_word
from ..errors import ClientError, SpecError
from ..types import LogEntry
from .config import ClientConfig

logger = logging.getLogger(__name__)


class RpcLogSource:
    """Reads registry logs over `eth_getLogs` and locked amounts over `eth_call`."""

    def __init__(self, config: ClientConfig):
        self.config = config
        self.session: Optional[aiohttp.ClientSession] = None
        self._ids = itertools.count()

    async def connect(self) -> None:
        """Initialize HTTP session."""
        timeout = aiohttp.ClientTimeout(total=self.config.request_timeout)
        self.session = aiohttp.ClientSession(timeout=timeout)

    async def close(self) -> None:
        """Close HTTP session."""
        if self.session:
            await self.session.close()
            self.session = None

    async def __aenter__(self) -> "RpcLogSource":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def call(self, method: str, params: list[Any]) -> Any:
        if self.session is None:
            raise ClientError("rpc session not connected")
        body = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            async with self.session.post(self.config.rpc_url, json=body) as resp:
                resp.raise_for_status()
                data = await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"{method} against {self.config.rpc_url} failed: {e}")
            raise ClientError(f"rpc request failed: {e}") from e

        if "error" in data:
            message = data["error"].get("message", "unknown error")
            logger.error(f"{method} returned error: {message}")
            raise ClientError(f"rpc error: {message}")
        return data.get("result")

    async def get_logs(
        self,
        topic: bytes,
        from_block: Optional[int] = None,
        to_block: Union[int, str, None] = None,
    ) -> list[LogEntry]:
        start = self.config.from_block if from_block is None else from_block
        end = self.config.to_block if to_block is None else to_block
        query = {
            "fromBlock": hex(start),
            "toBlock": end if isinstance(end, str) else hex(end),
            "address": self.config.registry_address,
            "topics": ["0x" + topic.hex()],
        }
        result = await self.call("eth_getLogs", [query])
        logs = [log_from_rpc(obj) for obj in result or []]
        logger.debug(f"eth_getLogs {EVENT_NAMES.get(topic, topic.hex()[:8])}: {len(logs)} logs")
        return logs

    async def get_locked_amount(self, escrow_id: int, block: Union[int, str, None] = None) -> int:
        """`getLockedAmount(escrow_id)` through `eth_call`."""
        tag = self.config.to_block if block is None else block
        call = {
            "to": self.config.registry_address,
            "data": "0x" + (GET_LOCKED_AMOUNT_SELECTOR + u256_word(escrow_id)).hex(),
        }
        result = await self.call("eth_call", [call, tag if isinstance(tag, str) else hex(tag)])
        try:
            return Reader(bytes.fromhex(result[2:])).read_u256()
        except (TypeError, ValueError, SpecError) as e:
            raise ClientError(f"malformed getLockedAmount result: {result!r}") from e
