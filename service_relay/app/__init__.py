"""
Relay provider package.

Lets a chain SDK that expects to POST JSON-RPC straight to a full node
send every call through a decentralized relay network instead, signed
with an Application Authentication Token. The SDK code does not change;
it is handed a ``ProviderAdapter`` in place of its HTTP provider.

Structure:
- app.aat: AAT issuance and verification (Ed25519).
- app.transport: relay node dispatch, retries and timeouts.
- app.provider: the SDK-facing ``request(url, body, method)`` capability.
- app.chain: ICON JSON-RPC client built on that capability.
- app.main: example run (balance query, then transaction submission).

Design notes:
- Module import performs no IO; configuration is passed in explicitly.
- Failures surface as ``shared.errors`` exceptions, never as return values.
"""
