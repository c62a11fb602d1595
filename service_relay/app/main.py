"""
Example consumer: reads an ICON balance, then submits a signed transfer,
with every JSON-RPC call relayed through the relay network.

    python -m service_relay.app.main --address hx... [--signed-tx tx.json]

Key material and relay settings come from ``RELAY_*`` environment
variables or a ``.env`` file (see ``shared.config.RelayConfig``).
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from shared.config import RelayConfig, get_config
from shared.errors import InvalidRequestError, RelayProviderException
from shared.logging import configure_logging, get_logger
from .chain import IconClient
from .provider import ProviderAdapter

logger = get_logger("relay.main")


async def run(config: RelayConfig, address: str,
              signed_transaction: Optional[Dict[str, Any]] = None,
              adapter: Optional[ProviderAdapter] = None) -> Dict[str, Any]:
    """Balance check, then (optionally) submission. Each stage awaits the last."""
    adapter = adapter or ProviderAdapter.from_config(config)
    icon = IconClient(adapter, url=config.path_prefix)

    balance = await icon.get_balance(address)
    logger.info("Wallet balance", address=address, balance=balance)
    summary: Dict[str, Any] = {"address": address, "balance": balance}

    if signed_transaction is not None:
        summary["tx_hash"] = await icon.send_transaction(signed_transaction)

    return summary


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Query an ICON wallet through the relay network.")
    parser.add_argument("--address", required=True, help="ICON address whose balance is read")
    parser.add_argument("--signed-tx", type=Path, default=None,
                        help="JSON file holding an already signed icx_sendTransaction params object")
    parser.add_argument("--relay-node", action="append", default=None,
                        help="Relay node endpoint; repeat for several (overrides RELAY_RELAY_NODES)")
    parser.add_argument("--chain-id", default=None, help="Target chain identifier (overrides RELAY_CHAIN_ID)")
    return parser.parse_args(argv)


def _load_signed_transaction(path: Path) -> Dict[str, Any]:
    try:
        transaction = json.loads(path.read_text())
    except (OSError, ValueError) as e:
        raise InvalidRequestError(
            f"Cannot read signed transaction from {path}",
            details={"path": str(path), "error": str(e)}
        )
    if not isinstance(transaction, dict):
        raise InvalidRequestError(
            "Signed transaction file must hold a JSON object",
            details={"path": str(path)}
        )
    return transaction


def main(argv=None) -> int:
    args = _parse_args(argv)

    overrides: Dict[str, Any] = {}
    if args.relay_node:
        overrides["relay_nodes"] = args.relay_node
    if args.chain_id:
        overrides["chain_id"] = args.chain_id
    config = get_config(**overrides)
    configure_logging("relay", config.log_level)

    try:
        signed_transaction = None
        if args.signed_tx is not None:
            signed_transaction = _load_signed_transaction(args.signed_tx)
        summary = asyncio.run(run(config, args.address, signed_transaction))
    except KeyboardInterrupt:
        return 130
    except RelayProviderException as exc:
        print(exc.to_response().model_dump_json(indent=2), file=sys.stderr)
        return 1

    print(json.dumps(summary, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
