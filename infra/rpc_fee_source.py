from __future__ import annotations

import itertools
import logging
from typing import Iterable, Optional

import httpx

from domain.errors import SampleFetchFailure
from domain.ports import FeeSource

logger = logging.getLogger(__name__)


class JsonRpcFeeSource(FeeSource):
    """
    Lê baseFeePerGas do bloco mais recente via JSON-RPC (eth_getBlockByNumber).
    Qualquer falha vira SampleFetchFailure; nunca devolve 0 no lugar do erro.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout_sec: float = 5.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._url = url
        self._client = client or httpx.Client(timeout=timeout_sec)
        self._owns_client = client is None
        self._ids = itertools.count(1)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def fetch_base_fee(self) -> int:
        body = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": "eth_getBlockByNumber",
            "params": ["latest", False],
        }

        try:
            r = self._client.post(self._url, json=body)
            r.raise_for_status()
            data = r.json()
        except httpx.HTTPError as e:
            raise SampleFetchFailure(f"rpc request failed: {e}") from e
        except ValueError as e:
            raise SampleFetchFailure(f"rpc returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise SampleFetchFailure(f"rpc returned unexpected body: {data!r}")
        if data.get("error") is not None:
            raise SampleFetchFailure(f"rpc error: {data['error']}")

        block = data.get("result")
        if not isinstance(block, dict):
            raise SampleFetchFailure("rpc returned no block")

        raw = block.get("baseFeePerGas")
        if raw is None:
            # bloco pré-London não tem base fee
            raise SampleFetchFailure(f"block {block.get('number')} has no baseFeePerGas")

        # quantidade JSON-RPC: string hex com prefixo 0x
        if not isinstance(raw, str) or not raw.lower().startswith("0x"):
            raise SampleFetchFailure(f"invalid baseFeePerGas: {raw!r}")
        try:
            value = int(raw, 16)
        except ValueError as e:
            raise SampleFetchFailure(f"invalid baseFeePerGas: {raw!r}") from e

        logger.debug("block %s baseFeePerGas=%d", block.get("number"), value)
        return value


class SequenceFeeSource(FeeSource):
    """
    Reproduz uma lista fixa de valores (dev / simulação).
    Esgotada a lista, cada leitura falha.
    """

    def __init__(self, values: Iterable[int]):
        self._it = iter(list(values))

    def fetch_base_fee(self) -> int:
        try:
            return int(next(self._it))
        except StopIteration:
            raise SampleFetchFailure("sequence exhausted") from None
