"""Blockchain contract address constants."""

from typing import Optional, TypedDict


class NetworkAssets(TypedDict):
    WETH: str
    USDC: Optional[str]
    USDT: Optional[str]
    DAI: Optional[str]
    WBTC: Optional[str]


class KnownToken(TypedDict):
    symbol: str
    name: str
    decimals: int


ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

ETH_MAINNET_ASSETS: NetworkAssets = {
    "WETH": "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
    "USDC": "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
    "USDT": "0xdAC17F958D2ee523a2206206994597C13D831ec7",
    "DAI": "0x6B175474E89094C44Da98b954EedeAC495271d0F",
    "WBTC": "0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599",
}

SEPOLIA_ASSETS: NetworkAssets = {
    "WETH": "0xfFf9976782d46CC05630D1f6eBAb18b2324d6B14",
    "USDC": "0x1c7D4B196Cb0C7B01d743Fbc6116a902379C7238",
    "USDT": None,
    "DAI": None,
    "WBTC": None,
}

BASE_ASSETS: NetworkAssets = {
    "WETH": "0x4200000000000000000000000000000000000006",
    "USDC": "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
    "USDT": "0xfde4C96c8593536E31F229EA8f37b2ADa2699bb2",
    "DAI": "0x50c5725949A6F0c72E6C4a641F24049A917DB0Cb",
    "WBTC": None,
}

# Symbol -> metadata. Decimals differ per token, do not assume 18.
TOKEN_METADATA: dict[str, KnownToken] = {
    "WETH": {"symbol": "WETH", "name": "Wrapped Ether", "decimals": 18},
    "USDC": {"symbol": "USDC", "name": "USD Coin", "decimals": 6},
    "USDT": {"symbol": "USDT", "name": "Tether USD", "decimals": 6},
    "DAI": {"symbol": "DAI", "name": "Dai Stablecoin", "decimals": 18},
    "WBTC": {"symbol": "WBTC", "name": "Wrapped BTC", "decimals": 8},
}

DEFAULT_BRIDGE_TOKENS = ["WETH", "USDC", "DAI", "USDT", "WBTC"]

# https://docs.uniswap.org/contracts/v2/reference/smart-contracts/v2-deployments
UNISWAP_V2_FACTORIES: dict[str, str] = {
    "mainnet": "0x5C69bEe701ef814a2B6a3EDD4B1652CB9cc5aA6f",
    "sepolia": "0xF62c03E08ada871A0bEb309762E260a7a6a880E6",
    "base": "0x8909Dc15e40173Ff4699343b6eB8132c65e18eC6",
}

DEFAULT_MAINNET_RPC_URL = "https://eth.drpc.org"
DEFAULT_SEPOLIA_RPC_URL = "https://sepolia.drpc.org"
DEFAULT_BASE_RPC_URL = "https://mainnet.base.org"
