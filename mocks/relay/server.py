"""
Mock relay node serving ICON JSON-RPC answers through the relay route.
"""

import hashlib
import json
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from fastapi import FastAPI
from fastapi.responses import JSONResponse
import sys
import os

# Add repository root to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from shared.errors import SigningError
from shared.logging import get_logger
from service_relay.app.aat import AuthToken, verify
from service_relay.app.transport.models import RELAY_ROUTE, RelayEnvelope, RelayErrorBody

ICON_TESTNET_CHAIN_ID = "d9d77bce50d80e70026bd240fb0759f08aab7aee63d0a6d98c545f2b5ae0a0b8"

# Returns the chain's JSON body for one relayed call.
ChainHandler = Callable[[RelayEnvelope], Any]


class MockRelayServer:
    """Mock relay node implementation.

    Checks the AAT and chain id like a real node, then answers from
    ``handler`` (default: a tiny in-memory ICON node). ``transient_failures``
    makes the next N relays fail with a bare 503, and ``rejections`` maps
    JSON-RPC method names to ``(code, message)`` structured rejections.
    """

    def __init__(self,
                 port: int = 8081,
                 supported_chains: Iterable[str] = (ICON_TESTNET_CHAIN_ID,),
                 balances: Optional[Dict[str, int]] = None,
                 handler: Optional[ChainHandler] = None):
        self.port = port
        self.logger = get_logger("mock.relay")
        self.app = FastAPI(title="Mock Relay Node", version="1.0.0")

        self.supported_chains = set(supported_chains)
        self.balances: Dict[str, int] = dict(balances or {})
        self.handler = handler or self._icon_handler
        self.transient_failures = 0
        self.rejections: Dict[str, Tuple[int, str]] = {}

        # Every relay received, in arrival order
        self.relays: List[RelayEnvelope] = []

        self._setup_routes()

    def _setup_routes(self):
        """Set up mock relay routes."""

        @self.app.get("/health")
        async def health():
            """Health endpoint."""
            return {"status": "ok", "chains": sorted(self.supported_chains)}

        @self.app.post(RELAY_ROUTE)
        async def relay(envelope: RelayEnvelope):
            """Relay endpoint."""
            self.relays.append(envelope)

            if self.transient_failures > 0:
                self.transient_failures -= 1
                return JSONResponse(status_code=503, content={"detail": "node overloaded"})

            try:
                token = AuthToken.from_wire(envelope.aat)
            except SigningError:
                token = None
            if token is None or not verify(token):
                return self._reject(401, "invalid AAT")

            if envelope.blockchain not in self.supported_chains:
                return self._reject(400, f"unsupported blockchain: {envelope.blockchain}")

            rpc_method = self._rpc_method(envelope)
            if rpc_method in self.rejections:
                code, message = self.rejections[rpc_method]
                return self._reject(code, message)

            body = self.handler(envelope)
            return {"response": json.dumps(body), "signature": ""}

    def _reject(self, code: int, message: str) -> JSONResponse:
        self.logger.info("Rejecting relay", code=code, message=message)
        return JSONResponse(status_code=code, content=RelayErrorBody.build(code, message))

    @staticmethod
    def _rpc_method(envelope: RelayEnvelope) -> Optional[str]:
        try:
            return json.loads(envelope.payload.data).get("method")
        except (ValueError, AttributeError):
            return None

    def _icon_handler(self, envelope: RelayEnvelope) -> Dict[str, Any]:
        """Deterministic ICON v3 answers."""
        try:
            call = json.loads(envelope.payload.data)
        except ValueError:
            return {"jsonrpc": "2.0", "id": None, "error": {"code": -32700, "message": "Parse error"}}
        if not isinstance(call, dict):
            return {"jsonrpc": "2.0", "id": None, "error": {"code": -32600, "message": "Batch requests are not supported"}}

        call_id = call.get("id")
        method = call.get("method")
        params = call.get("params") or {}
        if not isinstance(params, dict):
            return {"jsonrpc": "2.0", "id": call_id, "error": {"code": -32602, "message": "Invalid params"}}

        if method == "icx_getBalance":
            result: Any = hex(self.balances.get(params.get("address"), 0))
        elif method == "icx_sendTransaction":
            digest = hashlib.sha3_256(json.dumps(params, sort_keys=True).encode()).hexdigest()
            result = f"0x{digest}"
        elif method == "icx_getTransactionResult":
            result = {"txHash": params.get("txHash"), "status": "0x1", "blockHeight": "0x1"}
        elif method == "icx_getLastBlock":
            result = {"height": 1, "block_hash": "00" * 32}
        else:
            return {"jsonrpc": "2.0", "id": call_id, "error": {"code": -32601, "message": "Method not found"}}

        return {"jsonrpc": "2.0", "id": call_id, "result": result}


def create_app():
    """Create mock relay node application."""
    server = MockRelayServer()
    return server.app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8081)
