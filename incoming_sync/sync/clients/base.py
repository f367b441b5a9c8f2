"""
Base block explorer client interface.

Defines the contract that all explorer clients must implement.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from incoming_sync.normalization.models import RawExplorerTransaction


class BaseExplorerClient(ABC):
    """
    Abstract base class for block explorer clients.

    A client answers one page of incoming-transaction history per call;
    it never paginates on its own.
    """

    def __init__(self, api_key: Optional[str] = None, timeout: float = 30.0):
        """
        Initialize the client.

        Args:
            api_key: Explorer API key, if the provider requires one
            timeout: Request timeout in seconds
        """
        self.api_key = api_key
        self.timeout = timeout

    @abstractmethod
    async def fetch_since(
        self, address: str, from_block: Optional[int], chain_id: str
    ) -> List[RawExplorerTransaction]:
        """
        Fetch page 1 (ascending) of the address's transactions.

        Args:
            address: Account to query
            from_block: Lowest block to include; omitted from the query when falsy
            chain_id: Chain whose explorer is queried

        Returns:
            Parsed provider records; empty when the provider reports no results

        Raises:
            ExplorerConnectionError: If the explorer cannot be reached
            ExplorerHTTPError: If the explorer answers with a non-2xx status
            ExplorerRateLimitError: If the provider reports throttling
            ExplorerPayloadError: If the body or a record is malformed
            UnsupportedChainError: If the chain has no explorer endpoint
        """
        pass

    @abstractmethod
    async def get_latest_block_number(self, chain_id: str) -> int:
        """
        Return the chain head as seen by the explorer.

        Raises:
            ExplorerError: On any transport or payload failure
        """
        pass

    @abstractmethod
    def get_source_name(self) -> str:
        """
        Get the name of this explorer source.

        Returns:
            Source identifier (e.g., 'etherscan', 'static')
        """
        pass

    async def aclose(self) -> None:
        """Release network resources held by the client."""
        return None
