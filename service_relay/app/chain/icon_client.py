"""
ICON JSON-RPC v3 client that talks through any ``RequestCapability``.
"""

import itertools
import json
from typing import Any, Dict, Optional

from shared.errors import ChainRpcError, DecodeError, InvalidRequestError
from shared.logging import get_logger
from ..provider import RequestCapability
from ..transport import HttpMethod

ICON_API_PATH = "/api/v3"


class IconClient:
    """Minimal ICON client; signing and transaction building happen elsewhere."""

    def __init__(self, provider: RequestCapability, url: str = ICON_API_PATH):
        self.provider = provider
        self.url = url
        self.logger = get_logger("relay.chain.icon")
        self._ids = itertools.count(1)

    def _envelope(self, method: str, params: Optional[Dict[str, Any]] = None) -> str:
        call: Dict[str, Any] = {"jsonrpc": "2.0", "method": method, "id": next(self._ids)}
        if params is not None:
            call["params"] = params
        return json.dumps(call)

    async def call(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Issue one JSON-RPC call and return its ``result``."""
        response = await self.provider.request(self.url, self._envelope(method, params), HttpMethod.POST)

        if not isinstance(response, dict):
            raise DecodeError(f"{method}: expected a JSON-RPC object", details={"response": response})

        error = response.get("error")
        if error is not None:
            code = error.get("code", -32000) if isinstance(error, dict) else -32000
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            self.logger.warning("JSON-RPC error", rpc_method=method, rpc_code=code, error=message)
            raise ChainRpcError(code, message, details={"rpc_method": method})

        if "result" not in response:
            raise DecodeError(f"{method}: response has no result", details={"response": response})
        return response["result"]

    async def get_balance(self, address: str) -> int:
        """Balance of ``address`` in loop (1 ICX = 10**18 loop)."""
        result = await self.call("icx_getBalance", {"address": address})
        try:
            return int(result, 16)
        except (TypeError, ValueError):
            raise DecodeError("icx_getBalance: balance is not a hex string", details={"result": result})

    async def send_transaction(self, signed_transaction: Dict[str, Any]) -> str:
        """Submit an already signed transaction and return its hash."""
        if "signature" not in signed_transaction:
            raise InvalidRequestError("transaction must be signed before submission")
        tx_hash = await self.call("icx_sendTransaction", signed_transaction)
        self.logger.info("Transaction submitted", tx_hash=tx_hash)
        return tx_hash

    async def get_transaction_result(self, tx_hash: str) -> Dict[str, Any]:
        return await self.call("icx_getTransactionResult", {"txHash": tx_hash})

    async def get_last_block(self) -> Dict[str, Any]:
        return await self.call("icx_getLastBlock")
