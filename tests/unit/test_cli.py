"""Tests for CLI module."""

import json
import logging
import tempfile
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from routeros_rest import cli
from routeros_rest.api import RouterOSRestClient
from routeros_rest.cli import create_argument_parser, load_config_from_args, main, run_command
from routeros_rest.config import get_settings
from routeros_rest.exceptions import RouterOSAuthenticationError, RouterOSServerError
from routeros_rest.observability.logging import get_correlation_id, set_correlation_id
from tests.unit.http_test_utils import json_response


@pytest.fixture
def restore_root_logger():
    root_logger = logging.getLogger()
    original_handlers = list(root_logger.handlers)
    original_level = root_logger.level
    yield
    root_logger.handlers = original_handlers
    root_logger.setLevel(original_level)


@pytest.fixture
def mock_device(monkeypatch: pytest.MonkeyPatch, make_transport):
    """Route CLI clients through a MockTransport instead of the network."""

    def _install(responder):
        transport, handler = make_transport(responder)

        def factory(host, username, password, *, protocol=None):
            return RouterOSRestClient(
                host, username, password, protocol=protocol or "http", transport=transport
            )

        monkeypatch.setattr(cli, "RouterOSRestClient", factory)
        return handler

    return _install


class TestCreateArgumentParser:
    """Tests for create_argument_parser function."""

    def test_parser_creation(self) -> None:
        """Test that parser is created successfully."""
        parser = create_argument_parser()
        assert parser.prog == "routeros-rest"

    def test_parser_help(self) -> None:
        """Test that help text is available."""
        help_text = create_argument_parser().format_help()
        assert "RouterOS REST client" in help_text
        assert "--insecure" in help_text
        assert "--data" in help_text

    def test_rejects_unknown_verb(self) -> None:
        with pytest.raises(SystemExit):
            create_argument_parser().parse_args(["10.0.0.1", "export", "ip/address"])


class TestLoadConfigFromArgs:
    """Tests for load_config_from_args function."""

    def parse(self, *args: str):
        return create_argument_parser().parse_args([*args, "10.0.0.1", "print", "ip/address"])

    def test_defaults(self) -> None:
        settings = load_config_from_args(self.parse())
        assert settings.verify_ssl is True
        assert settings.timeout_seconds == 30.0

    def test_insecure_disables_verification(self) -> None:
        settings = load_config_from_args(self.parse("--insecure"))
        assert settings.verify_ssl is False

    def test_timeout_and_log_overrides(self) -> None:
        settings = load_config_from_args(
            self.parse("--timeout", "4", "--log-level", "DEBUG", "--log-format", "text")
        )
        assert settings.timeout_seconds == 4.0
        assert settings.log_level == "DEBUG"
        assert settings.log_format == "text"

    def test_config_file_with_cli_override(self) -> None:
        """Test that CLI arguments override config file values."""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            f.write("verify_ssl: true\ntimeout_seconds: 10\nprobe_port: 8443\n")
            path = f.name

        try:
            settings = load_config_from_args(self.parse("--config", path, "--insecure"))
            assert settings.verify_ssl is False  # CLI override
            assert settings.timeout_seconds == 10
            assert settings.probe_port == 8443
        finally:
            Path(path).unlink()


class TestRunCommand:
    """Tests for run_command against a mocked device."""

    @pytest.mark.asyncio
    async def test_print(self, mock_device) -> None:
        handler = mock_device(json_response(200, [{".id": "*1"}]))
        parsed = create_argument_parser().parse_args(
            ["-u", "admin", "-p", "pw", "10.0.0.1", "print", "ip/address"]
        )

        assert await run_command(parsed) == [{".id": "*1"}]
        assert handler.requests[0].method == "GET"
        assert str(handler.requests[0].url) == "http://10.0.0.1/rest/ip/address"

    @pytest.mark.asyncio
    async def test_set_sends_data(self, mock_device) -> None:
        handler = mock_device(json_response(200, {}))
        parsed = create_argument_parser().parse_args(
            ["10.0.0.1", "set", "system/identity", "--data", '{"name": "core-1"}']
        )

        await run_command(parsed)

        assert handler.requests[0].method == "PATCH"
        assert json.loads(handler.requests[0].content) == {"name": "core-1"}

    @pytest.mark.asyncio
    async def test_new_correlation_id_per_run(self, mock_device) -> None:
        mock_device(json_response(200, []))
        parsed = create_argument_parser().parse_args(["10.0.0.1", "print", "interface"])
        set_correlation_id("previous-run")

        await run_command(parsed)

        assert get_correlation_id() not in ("previous-run", "")

    @pytest.mark.asyncio
    async def test_auth(self, mock_device) -> None:
        handler = mock_device(json_response(200, {"uptime": "1d"}))
        parsed = create_argument_parser().parse_args(["10.0.0.1", "auth"])

        assert await run_command(parsed) is None
        assert handler.requests[0].url.path == "/rest/system/resource"

    @pytest.mark.asyncio
    async def test_auth_failure(self, mock_device) -> None:
        mock_device(json_response(401, {"error": 401}))
        parsed = create_argument_parser().parse_args(["10.0.0.1", "auth"])

        with pytest.raises(RouterOSAuthenticationError):
            await run_command(parsed)


class TestMain:
    """Tests for the main entry point."""

    def test_success_prints_json(
        self, monkeypatch: pytest.MonkeyPatch, capsys, restore_root_logger
    ) -> None:
        monkeypatch.setattr(cli, "run_command", AsyncMock(return_value={"name": "core-1"}))

        exit_code = main(["10.0.0.1", "print", "system/identity"])

        assert exit_code == 0
        assert json.loads(capsys.readouterr().out) == {"name": "core-1"}

    def test_auth_success_message(
        self, monkeypatch: pytest.MonkeyPatch, capsys, restore_root_logger
    ) -> None:
        monkeypatch.setattr(cli, "run_command", AsyncMock(return_value=None))

        assert main(["10.0.0.1", "auth"]) == 0
        assert "Authentication success" in capsys.readouterr().out

    def test_routeros_error_exit_code(
        self, monkeypatch: pytest.MonkeyPatch, capsys, restore_root_logger
    ) -> None:
        monkeypatch.setattr(
            cli,
            "run_command",
            AsyncMock(side_effect=RouterOSServerError("HTTP error: 500", 500)),
        )

        assert main(["10.0.0.1", "print", "ip/address"]) == 1
        assert "Error: HTTP error: 500" in capsys.readouterr().err

    def test_settings_installed_globally(
        self, monkeypatch: pytest.MonkeyPatch, restore_root_logger
    ) -> None:
        monkeypatch.setattr(cli, "run_command", AsyncMock(return_value=[]))

        main(["--insecure", "10.0.0.1", "print", "ip/address"])

        assert get_settings().verify_ssl is False

    def test_missing_command(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["10.0.0.1", "print"])
        assert exc_info.value.code == 2

    def test_invalid_data(self) -> None:
        with pytest.raises(SystemExit):
            main(["10.0.0.1", "add", "ip/address", "--data", "{not json"])

    @pytest.mark.parametrize("verb", ["print", "remove", "delete"])
    def test_data_rejected_for_verbs_without_payload(self, verb: str, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["10.0.0.1", verb, "ip/address/*1", "--data", "{}"])

        assert exc_info.value.code == 2
        assert "--data is not accepted" in capsys.readouterr().err

    def test_data_rejected_for_auth(self) -> None:
        with pytest.raises(SystemExit):
            main(["10.0.0.1", "auth", "--data", "{}"])

    def test_missing_config_file(self, capsys) -> None:
        exit_code = main(["--config", "/nonexistent.yaml", "10.0.0.1", "print", "ip/address"])

        assert exit_code == 2
        assert "Configuration error" in capsys.readouterr().err
