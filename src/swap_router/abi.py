from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path

ABIS_DIR = Path(__file__).parent / "abis"


@lru_cache(maxsize=None)
def load_abi(name: str) -> list[dict]:
    """Return the ``abi`` field of a bundled contract description.

    Args:
        name: File stem under ``abis/``, e.g. ``"UniswapV2Pair"``.

    Raises:
        FileNotFoundError: If no ABI with that name is bundled.
        KeyError: If the JSON has no "abi" field.
    """
    with (ABIS_DIR / f"{name}.json").open() as f:
        return json.load(f)["abi"]


def load_uniswap_v2_factory_abi() -> list[dict]:
    return load_abi("UniswapV2Factory")


def load_uniswap_v2_pair_abi() -> list[dict]:
    return load_abi("UniswapV2Pair")


def load_erc20_abi() -> list[dict]:
    return load_abi("ERC20")
