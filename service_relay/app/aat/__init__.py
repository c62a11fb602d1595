"""
Application Authentication Token (AAT) package.

An AAT is issued by an application key and delegates relay bandwidth to
a client key. Tokens are immutable and safe to share across concurrent
relays. Signing happens locally; nothing here touches the network.
"""

from .token import AAT_VERSION, AuthToken, issue, verify

__all__ = ["AAT_VERSION", "AuthToken", "issue", "verify"]
