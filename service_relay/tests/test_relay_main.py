"""
Tests for the example balance-then-transfer run.
"""

import json

import pytest
import httpx
from unittest.mock import patch

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_relay.app import main as relay_main
from service_relay.app.provider import ProviderAdapter
from shared.config import RelayConfig
from shared.test_helpers import echo_rpc_handler, generate_keypair

CHAIN_ID = "0040"


@pytest.fixture
def keys():
    return generate_keypair()


@pytest.fixture
def config(keys):
    return RelayConfig(
        relay_nodes=["http://node-a:8081"],
        chain_id=CHAIN_ID,
        retry_base_delay_ms=0,
        application_public_key=keys.public_key,
        application_private_key=keys.private_key,
        _env_file=None,
    )


def rpc_results(call):
    if call["method"] == "icx_getBalance":
        return "0xde0b6b3a7640000"
    if call["method"] == "icx_sendTransaction":
        return "0x" + "ab" * 32
    return None


class TestRun:
    """Test cases for run()."""

    @pytest.mark.asyncio
    async def test_balance_only(self, config):
        adapter = ProviderAdapter.from_config(
            config, http_transport=httpx.MockTransport(echo_rpc_handler(rpc_results))
        )

        summary = await relay_main.run(config, "hx1", adapter=adapter)

        assert summary == {"address": "hx1", "balance": 10 ** 18}

    @pytest.mark.asyncio
    async def test_balance_then_transfer(self, config):
        seen = []

        def handler(request):
            seen.append(json.loads(json.loads(request.content)["payload"]["data"])["method"])
            return echo_rpc_handler(rpc_results)(request)

        adapter = ProviderAdapter.from_config(config, http_transport=httpx.MockTransport(handler))

        summary = await relay_main.run(config, "hx1", {"from": "hx1", "signature": "c2ln"}, adapter=adapter)

        assert summary["tx_hash"] == "0x" + "ab" * 32
        assert seen == ["icx_getBalance", "icx_sendTransaction"]


class TestMain:
    """Test cases for the command line entry point."""

    def test_main_prints_summary(self, config, capsys):
        async def fake_run(cfg, address, signed_transaction=None, adapter=None):
            return {"address": address, "balance": 5}

        with patch.object(relay_main, "get_config", return_value=config), \
                patch.object(relay_main, "configure_logging"), \
                patch.object(relay_main, "run", side_effect=fake_run):
            exit_code = relay_main.main(["--address", "hx1"])

        assert exit_code == 0
        assert json.loads(capsys.readouterr().out) == {"address": "hx1", "balance": 5}

    def test_main_reports_signing_error(self, capsys):
        bad_config = RelayConfig(_env_file=None)

        with patch.object(relay_main, "get_config", return_value=bad_config), \
                patch.object(relay_main, "configure_logging"):
            exit_code = relay_main.main(["--address", "hx1"])

        assert exit_code == 1
        error = json.loads(capsys.readouterr().err)
        assert error["code"] == "SIGNING_ERROR"

    def test_main_passes_overrides(self, config):
        async def fake_run(cfg, address, signed_transaction=None, adapter=None):
            return {}

        with patch.object(relay_main, "get_config", return_value=config) as get_config, \
                patch.object(relay_main, "configure_logging"), \
                patch.object(relay_main, "run", side_effect=fake_run):
            relay_main.main(["--address", "hx1", "--relay-node", "http://a:1", "--relay-node", "http://b:2",
                             "--chain-id", "0001"])

        get_config.assert_called_once_with(relay_nodes=["http://a:1", "http://b:2"], chain_id="0001")

    @pytest.mark.parametrize("content", [None, "{not json", '["a", "list"]'])
    def test_main_reports_unreadable_signed_tx(self, config, tmp_path, capsys, content):
        signed_tx = tmp_path / "tx.json"
        if content is not None:
            signed_tx.write_text(content)

        with patch.object(relay_main, "get_config", return_value=config), \
                patch.object(relay_main, "configure_logging"):
            exit_code = relay_main.main(["--address", "hx1", "--signed-tx", str(signed_tx)])

        assert exit_code == 1
        error = json.loads(capsys.readouterr().err)
        assert error["code"] == "INVALID_REQUEST"
        assert error["details"]["path"] == str(signed_tx)

    def test_main_reports_unsigned_transaction(self, config, tmp_path, capsys):
        signed_tx = tmp_path / "tx.json"
        signed_tx.write_text(json.dumps({"from": "hx1", "to": "hx2", "value": "0x1"}))
        adapter = ProviderAdapter.from_config(
            config, http_transport=httpx.MockTransport(echo_rpc_handler(rpc_results))
        )

        with patch.object(relay_main, "get_config", return_value=config), \
                patch.object(relay_main, "configure_logging"), \
                patch.object(relay_main.ProviderAdapter, "from_config", return_value=adapter):
            exit_code = relay_main.main(["--address", "hx1", "--signed-tx", str(signed_tx)])

        assert exit_code == 1
        assert json.loads(capsys.readouterr().err)["code"] == "INVALID_REQUEST"
