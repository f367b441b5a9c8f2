"""Block explorer client implementations."""

from incoming_sync.sync.clients.base import BaseExplorerClient
from incoming_sync.sync.clients.etherscan_client import EtherscanClient
from incoming_sync.sync.clients.static_client import StaticExplorerClient

__all__ = ["BaseExplorerClient", "EtherscanClient", "StaticExplorerClient"]
