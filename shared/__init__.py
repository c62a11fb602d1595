"""
Shared utilities for the relay provider.

This package aggregates the ambient building blocks used by the relay
service code and its test tooling:

- config: Relay configuration via pydantic-settings
- logging: Structured logging with relay correlation
- metrics: Prometheus counters for relay attempts and calls
- errors: Canonical error types and responses
- retry: Retry decorator with backoff
- test_helpers: Key pairs and scripted relay nodes for tests

Do not import from service_relay into shared/.
"""
