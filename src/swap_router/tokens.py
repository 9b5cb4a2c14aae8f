from __future__ import annotations

import asyncio

from web3 import Web3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError

from .abi import load_erc20_abi
from .clients.rpc import ThrottledRpc
from .constants import TOKEN_METADATA
from .domain import Token
from .logger import get_logger
from .settings import RouterSettings

logger = get_logger(__name__)


class TokenRegistry:
    """Resolves token symbols and addresses into ``Token`` descriptors.

    Well-known tokens for the configured network are served from constants.
    Other addresses are looked up through ERC20 ``symbol``/``name``/``decimals``
    and cached for the life of the registry.
    """

    def __init__(
        self,
        config: RouterSettings,
        w3: Web3 | None = None,
        rpc: ThrottledRpc | None = None,
    ):
        self.config = config
        self._w3 = w3
        self._rpc = rpc
        self._tokens: dict[str, Token] = {}
        self._by_symbol: dict[str, Token] = {}

        for symbol, address in config.assets.items():
            if address is None:
                continue
            meta = TOKEN_METADATA[symbol]
            token = Token(
                address=Web3.to_checksum_address(address),
                symbol=meta["symbol"],
                name=meta["name"],
                decimals=meta["decimals"],
            )
            self.register(token)

    def register(self, token: Token) -> Token:
        self._tokens[token.key] = token
        self._by_symbol.setdefault(token.symbol.upper(), token)
        return token

    def known(self, symbol_or_address: str) -> Token | None:
        """Return a token already in the registry, without touching the chain."""
        if Web3.is_address(symbol_or_address):
            return self._tokens.get(symbol_or_address.lower())
        return self._by_symbol.get(symbol_or_address.upper())

    def bridge_tokens(self) -> list[Token]:
        """Bridge tokens configured for multi-hop search on this network."""
        tokens = []
        for symbol in self.config.bridge_tokens:
            token = self._by_symbol.get(symbol)
            if token is None:
                logger.debug(
                    "Bridge token %s has no deployment on %s, skipping",
                    symbol,
                    self.config.network.value,
                )
                continue
            tokens.append(token)
        return tokens

    def _web3(self) -> Web3:
        if self._w3 is None:
            self._w3 = Web3(
                Web3.HTTPProvider(
                    self.config.rpc_url_required,
                    request_kwargs={"timeout": self.config.rpc_timeout_seconds},
                )
            )
        return self._w3

    async def resolve(self, symbol_or_address: str) -> Token:
        """Resolve a symbol or address into a Token.

        Raises:
            ValueError: If a symbol is unknown, or the address does not
                behave like an ERC20 token.
        """
        cached = self.known(symbol_or_address)
        if cached is not None:
            return cached

        if not Web3.is_address(symbol_or_address):
            raise ValueError(
                f"Unknown token symbol '{symbol_or_address}' on {self.config.network.value}; "
                "pass the token address instead"
            )

        w3 = self._web3()
        rpc = self._rpc or ThrottledRpc(self.config)
        self._rpc = rpc
        checksum = Web3.to_checksum_address(symbol_or_address)
        contract = w3.eth.contract(address=checksum, abi=load_erc20_abi())

        try:
            symbol, name, decimals = await asyncio.gather(
                rpc.call(contract.functions.symbol().call),
                rpc.call(contract.functions.name().call),
                rpc.call(contract.functions.decimals().call),
            )
        except (BadFunctionCallOutput, ContractLogicError) as e:
            raise ValueError(
                f"Address {checksum} does not look like an ERC20 token: {e}"
            ) from e

        token = Token(
            address=checksum, symbol=str(symbol), name=str(name), decimals=int(decimals)
        )
        logger.debug("Resolved token %s -> %s (%d decimals)", checksum, token.symbol, token.decimals)
        return self.register(token)
