"""
Provider adapter package.

Chain SDKs delegate their HTTP-shaped JSON-RPC calls to a provider. The
``ProviderAdapter`` here fulfils that role by relaying each call through
the relay network with an AAT, and raises tagged exceptions from
``shared.errors`` instead of handing failures back as results.
"""

from .adapter import (
    DEFAULT_SUBMISSION_METHODS,
    ProviderAdapter,
    RequestCapability,
    rpc_method_names,
)

__all__ = [
    "DEFAULT_SUBMISSION_METHODS",
    "ProviderAdapter",
    "RequestCapability",
    "rpc_method_names",
]
