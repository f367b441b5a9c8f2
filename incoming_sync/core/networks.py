"""
Chains the block explorer integration knows about.

Chain identifiers are 0x-prefixed hex strings, as reported by the wallet's
network layer. Each entry names the explorer host serving that chain and the
decimal network id stamped on normalized records.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class ExplorerNetwork:
    """Explorer endpoint description for one chain."""

    chain_id: str
    name: str
    domain: str
    subdomain: str
    network_id: str

    @property
    def api_url(self) -> str:
        return f"https://{self.subdomain}.{self.domain}/api"


class ChainIds:
    MAINNET = "0x1"
    GOERLI = "0x5"
    SEPOLIA = "0xaa36a7"
    LINEA_GOERLI = "0xe704"
    LINEA_MAINNET = "0xe708"
    BSC = "0x38"
    BSC_TESTNET = "0x61"
    OPTIMISM = "0xa"
    OPTIMISM_TESTNET = "0x1a4"
    POLYGON = "0x89"
    POLYGON_TESTNET = "0x13881"
    AVALANCHE = "0xa86a"
    AVALANCHE_TESTNET = "0xa869"
    FANTOM = "0xfa"
    FANTOM_TESTNET = "0xfa2"
    GNOSIS = "0x64"
    MOONBEAM = "0x504"
    MOONRIVER = "0x505"
    MOONBEAM_TESTNET = "0x507"


def _network(chain_id: str, name: str, domain: str, subdomain: str, network_id: str) -> ExplorerNetwork:
    return ExplorerNetwork(
        chain_id=chain_id,
        name=name,
        domain=domain,
        subdomain=subdomain,
        network_id=network_id,
    )


EXPLORER_SUPPORTED_NETWORKS: Dict[str, ExplorerNetwork] = {
    n.chain_id: n
    for n in (
        _network(ChainIds.MAINNET, "mainnet", "etherscan.io", "api", "1"),
        _network(ChainIds.GOERLI, "goerli", "etherscan.io", "api-goerli", "5"),
        _network(ChainIds.SEPOLIA, "sepolia", "etherscan.io", "api-sepolia", "11155111"),
        _network(ChainIds.LINEA_GOERLI, "linea-goerli", "lineascan.build", "api-goerli", "59140"),
        _network(ChainIds.LINEA_MAINNET, "linea-mainnet", "lineascan.build", "api", "59144"),
        _network(ChainIds.BSC, "bsc", "bscscan.com", "api", "56"),
        _network(ChainIds.BSC_TESTNET, "bsc-testnet", "bscscan.com", "api-testnet", "97"),
        _network(ChainIds.OPTIMISM, "optimism", "etherscan.io", "api-optimistic", "10"),
        _network(ChainIds.OPTIMISM_TESTNET, "optimism-goerli", "etherscan.io", "api-goerli-optimistic", "420"),
        _network(ChainIds.POLYGON, "polygon", "polygonscan.com", "api", "137"),
        _network(ChainIds.POLYGON_TESTNET, "polygon-mumbai", "polygonscan.com", "api-testnet", "80001"),
        _network(ChainIds.AVALANCHE, "avalanche", "snowtrace.io", "api", "43114"),
        _network(ChainIds.AVALANCHE_TESTNET, "avalanche-fuji", "snowtrace.io", "api-testnet", "43113"),
        _network(ChainIds.FANTOM, "fantom", "ftmscan.com", "api", "250"),
        _network(ChainIds.FANTOM_TESTNET, "fantom-testnet", "ftmscan.com", "api-testnet", "4002"),
        _network(ChainIds.GNOSIS, "gnosis", "gnosisscan.io", "api", "100"),
        _network(ChainIds.MOONBEAM, "moonbeam", "moonscan.io", "api-moonbeam", "1284"),
        _network(ChainIds.MOONRIVER, "moonriver", "moonscan.io", "api-moonriver", "1285"),
        _network(ChainIds.MOONBEAM_TESTNET, "moonbase", "moonscan.io", "api-moonbase", "1287"),
    )
}


def get_network(chain_id: str) -> ExplorerNetwork:
    """Look up a supported network, raising KeyError for unknown chains."""
    return EXPLORER_SUPPORTED_NETWORKS[chain_id]


def is_supported_chain(chain_id: str) -> bool:
    return chain_id in EXPLORER_SUPPORTED_NETWORKS
