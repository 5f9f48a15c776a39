"""
Configuration for the escrow client.
"""

import os
from dataclasses import dataclass

from ..config import REGISTRY_ADDRESS, REGISTRY_DEPLOY_BLOCK


@dataclass
class ClientConfig:
    """Where to read registry notifications from."""
    rpc_url: str = "http://localhost:8545"
    registry_address: str = "0x" + REGISTRY_ADDRESS.hex()

    # First block worth scanning; nothing is emitted before deployment.
    from_block: int = REGISTRY_DEPLOY_BLOCK
    to_block: str = "latest"

    request_timeout: float = 30.0
    verbose: bool = False

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Load configuration from environment variables."""
        config = cls()

        config.rpc_url = os.environ.get("ESCROW_RPC_URL", config.rpc_url)
        config.registry_address = os.environ.get(
            "ESCROW_CONTRACT_ADDRESS", config.registry_address
        )

        from_block = os.environ.get("ESCROW_FROM_BLOCK")
        if from_block:
            config.from_block = int(from_block, 0)

        timeout = os.environ.get("ESCROW_RPC_TIMEOUT")
        if timeout:
            config.request_timeout = float(timeout)

        config.verbose = os.environ.get("VERBOSE", "").lower() in ("true", "1", "yes")

        return config
