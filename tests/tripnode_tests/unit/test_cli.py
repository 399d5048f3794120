"""
Tests for the tripnode command line.
"""

from unittest.mock import MagicMock, patch

import requests
from click.testing import CliRunner

from tripnode.cli.main import cli

STATUS = {
    "connected": True,
    "nodeAddress": "localhost:3100",
    "seedNodeAddress": "localhost:3000",
    "lastPingTime": "2024-01-01T00:00:00+00:00",
    "registrationStatus": "REGISTERED",
}
VALIDATORS = {
    "validators": [
        {"address": "10.0.0.1:4000", "isResponding": True, "lastSeen": "2024-01-01", "version": "1.0.0"},
        {"address": "10.0.0.3:4000", "isResponding": False, "lastSeen": None, "version": None},
    ],
    "total": 2,
    "active": 1,
}


def fake_get(url, timeout):
    response = MagicMock()
    response.json.return_value = STATUS if url.endswith("/p2p/status") else VALIDATORS
    return response


class TestStatusCommand:
    def test_prints_connection_and_validators(self):
        runner = CliRunner()
        with patch("tripnode.cli.main.requests.get", side_effect=fake_get) as mock_get:
            result = runner.invoke(cli, ["status", "--node-url", "http://node:3100/"])

        assert result.exit_code == 0
        assert "REGISTERED" in result.output
        assert "10.0.0.1:4000" in result.output
        assert "1/2 active" in result.output
        mock_get.assert_any_call("http://node:3100/p2p/status", timeout=10.0)

    def test_unreachable_node_exits_nonzero(self):
        runner = CliRunner()
        with patch("tripnode.cli.main.requests.get", side_effect=requests.ConnectionError("refused")):
            result = runner.invoke(cli, ["status"])

        assert result.exit_code == 1
        assert "refused" in result.output


class TestRunCommand:
    def test_invalid_configuration_exits(self, monkeypatch):
        monkeypatch.setenv("NODE_PORT", "not-a-port")
        result = CliRunner().invoke(cli, ["run"])

        assert result.exit_code == 1
        assert "NODE_PORT" in result.output

    def test_run_starts_and_stops_node(self, monkeypatch):
        monkeypatch.setenv("NODE_PORT", "3999")
        node = MagicMock()
        app = MagicMock()
        with patch("tripnode.node.ClientNode.from_config", return_value=node), patch(
            "tripnode.api.create_app", return_value=app
        ), patch("tripnode.cli.main.setup_logging"):
            result = CliRunner().invoke(cli, ["run"])

        assert result.exit_code == 0
        node.start.assert_called_once()
        app.run.assert_called_once_with(host="localhost", port=3999, threaded=True, use_reloader=False)
        node.stop.assert_called_once()
