"""
Etherscan-family explorer client.

Queries the `account/txlist` endpoint of the chain-specific explorer host
(api.etherscan.io, api-goerli.etherscan.io, api.bscscan.com, ...) and parses
the JSON envelope into raw transaction records.
"""

import time
from typing import Any, Dict, List, Optional

import httpx
import structlog

from incoming_sync.core.errors import (
    ExplorerConnectionError,
    ExplorerError,
    ExplorerHTTPError,
    ExplorerPayloadError,
    ExplorerRateLimitError,
    UnsupportedChainError,
)
from incoming_sync.core.networks import EXPLORER_SUPPORTED_NETWORKS, ExplorerNetwork
from incoming_sync.normalization.models import RawExplorerTransaction
from incoming_sync.normalization.normalizer import parse_raw_transaction
from incoming_sync.sync.clients.base import BaseExplorerClient

logger = structlog.get_logger(__name__)

STATUS_OK = "1"
STATUS_NOT_OK = "0"


class EtherscanClient(BaseExplorerClient):
    """Explorer client speaking the Etherscan `module/action` query API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        networks: Optional[Dict[str, ExplorerNetwork]] = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: Optional explorer API key
            timeout: Request timeout in seconds
            transport: httpx transport override (tests use httpx.MockTransport)
            networks: Chain table override (defaults to every supported explorer)
        """
        super().__init__(api_key, timeout)
        self._networks = networks if networks is not None else EXPLORER_SUPPORTED_NETWORKS
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport)

    def get_source_name(self) -> str:
        return "etherscan"

    async def aclose(self) -> None:
        await self._http.aclose()

    def build_txlist_params(
        self, address: str, from_block: Optional[int]
    ) -> Dict[str, Any]:
        """Query parameters for one ascending page of the address history."""
        params: Dict[str, Any] = {
            "module": "account",
            "action": "txlist",
            "address": address,
            "tag": "latest",
            "page": 1,
            "sort": "asc",
        }
        # A falsy start block is left out entirely, never sent as 0.
        if from_block:
            params["startBlock"] = from_block
        if self.api_key:
            params["apikey"] = self.api_key
        return params

    async def fetch_since(
        self, address: str, from_block: Optional[int], chain_id: str
    ) -> List[RawExplorerTransaction]:
        network = self._network_for(chain_id)
        data = await self._call(network, self.build_txlist_params(address, from_block))

        status = str(data.get("status", ""))
        result = data.get("result")

        if status == STATUS_NOT_OK:
            if isinstance(result, list):
                # Provider's "No transactions found" sentinel
                logger.debug(
                    "explorer.txlist.empty",
                    chain_id=chain_id,
                    message=data.get("message"),
                )
                return []
            self._raise_provider_error(data)

        if status != STATUS_OK:
            raise ExplorerPayloadError(f"Unexpected explorer status: {status!r}")
        if not isinstance(result, list):
            raise ExplorerPayloadError("Explorer result is not a list")

        records = [parse_raw_transaction(item) for item in result]
        logger.debug("explorer.txlist.fetched", chain_id=chain_id, count=len(records))
        return records

    async def get_latest_block_number(self, chain_id: str) -> int:
        network = self._network_for(chain_id)
        params: Dict[str, Any] = {"module": "proxy", "action": "eth_blockNumber"}
        if self.api_key:
            params["apikey"] = self.api_key
        data = await self._call(network, params)

        if str(data.get("status", "")) == STATUS_NOT_OK:
            self._raise_provider_error(data)

        result = data.get("result")
        try:
            return int(str(result), 16)
        except ValueError as e:
            raise ExplorerPayloadError(f"Invalid block number result: {result!r}") from e

    # ---------- internal ----------

    def _network_for(self, chain_id: str) -> ExplorerNetwork:
        network = self._networks.get(chain_id)
        if network is None:
            raise UnsupportedChainError(f"No explorer configured for chain {chain_id}")
        return network

    async def _call(
        self, network: ExplorerNetwork, params: Dict[str, Any]
    ) -> Dict[str, Any]:
        api_start = time.perf_counter()
        try:
            response = await self._http.get(network.api_url, params=params)
        except httpx.HTTPError as e:
            logger.warning(
                "explorer.request.failed",
                url=network.api_url,
                action=params.get("action"),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise ExplorerConnectionError(f"{network.name} explorer unreachable: {e}") from e

        latency = time.perf_counter() - api_start
        logger.debug(
            "explorer.request.completed",
            url=network.api_url,
            action=params.get("action"),
            status_code=response.status_code,
            latency_seconds=round(latency, 4),
        )

        if not response.is_success:
            raise ExplorerHTTPError(
                f"{network.name} explorer returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ExplorerPayloadError("Explorer response is not JSON") from e

        if not isinstance(data, dict):
            raise ExplorerPayloadError("Explorer response is not a JSON object")
        return data

    @staticmethod
    def _raise_provider_error(data: Dict[str, Any]) -> None:
        message = str(data.get("message", ""))
        detail = str(data.get("result", ""))
        if "rate" in message.lower() or "rate" in detail.lower():
            raise ExplorerRateLimitError(detail or message)
        raise ExplorerError(f"Explorer error: {message}: {detail}")
