"""Tests for telltales CLI commands."""

import json
from pathlib import Path
from unittest import mock

import pytest
from click.testing import CliRunner

from telltales.cli import cli
from telltales.credentials import CredentialStore, TelldusCredentials
from telltales.oauth.coordinator import AuthOutcome
from telltales.oauth.exceptions import AuthorizationDeniedError, UnauthorizedError
from telltales.telldus.exceptions import TelldusAPIError
from telltales.telldus.models import Category, Entry

STORED = TelldusCredentials("pub", "priv", "tok", "sec")
REFRESHED = TelldusCredentials("pub", "priv", "new-tok", "new-sec")


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def creds_file(tmp_path: Path) -> Path:
    """Credentials file holding a stored access token."""
    path = tmp_path / "credentials.yaml"
    CredentialStore(path).save(STORED)
    return path


@pytest.fixture
def mock_coordinator():
    """Patch the OAuth coordinator used by the CLI."""
    with mock.patch("telltales.cli.utils.OAuthCoordinator") as coordinator_cls:
        coordinator_cls.return_value.validate.return_value = AuthOutcome(
            tokens_refreshed=False, account_name="Ada Lovelace", credentials=STORED
        )
        yield coordinator_cls


@pytest.fixture
def mock_client():
    """Patch the Telldus REST client used by device commands."""
    with mock.patch("telltales.cli.device_commands.TelldusClient") as client_cls:
        yield client_cls.return_value


class TestValidateCommand:
    """Tests for 'telltales auth validate'."""

    def test_validate_with_working_tokens(
        self, runner: CliRunner, creds_file: Path, mock_coordinator
    ) -> None:
        """Valid stored tokens print the account name and keep the file."""
        before = creds_file.read_text()

        result = runner.invoke(cli, ["--credentials-file", str(creds_file), "auth", "validate"])

        assert result.exit_code == 0
        assert f"Using credentials file at {creds_file}" in result.output
        assert "Authenticated as Ada Lovelace." in result.output
        assert "Stored refreshed" not in result.output
        assert creds_file.read_text() == before
        mock_coordinator.return_value.validate.assert_called_once_with(STORED)

    def test_bare_invocation_validates(
        self, runner: CliRunner, creds_file: Path, mock_coordinator
    ) -> None:
        """Running without a subcommand validates."""
        result = runner.invoke(cli, ["--credentials-file", str(creds_file)])

        assert result.exit_code == 0
        assert "Authenticated as Ada Lovelace." in result.output

    def test_auth_group_defaults_to_validate(
        self, runner: CliRunner, creds_file: Path, mock_coordinator
    ) -> None:
        result = runner.invoke(cli, ["--credentials-file", str(creds_file), "auth"])

        assert result.exit_code == 0
        assert "Authenticated as Ada Lovelace." in result.output

    def test_validate_without_name(
        self, runner: CliRunner, creds_file: Path, mock_coordinator
    ) -> None:
        mock_coordinator.return_value.validate.return_value = AuthOutcome(
            tokens_refreshed=False, account_name=None, credentials=STORED
        )

        result = runner.invoke(cli, ["--credentials-file", str(creds_file), "auth", "validate"])

        assert result.exit_code == 0
        assert "Credentials verified with Telldus Live." in result.output

    def test_refreshed_tokens_are_saved(
        self, runner: CliRunner, creds_file: Path, mock_coordinator
    ) -> None:
        """A refreshed token pair is written back to the file."""
        mock_coordinator.return_value.validate.return_value = AuthOutcome(
            tokens_refreshed=True, account_name="Ada", credentials=REFRESHED
        )

        result = runner.invoke(cli, ["--credentials-file", str(creds_file), "auth", "validate"])

        assert result.exit_code == 0
        assert "Stored refreshed OAuth access token." in result.output
        assert CredentialStore(creds_file).load() == REFRESHED

    def test_open_browser_flag_forwarded(
        self, runner: CliRunner, creds_file: Path, mock_coordinator
    ) -> None:
        result = runner.invoke(
            cli, ["--credentials-file", str(creds_file), "--open-browser", "auth", "validate"]
        )

        assert result.exit_code == 0
        assert mock_coordinator.call_args[1]["open_browser"] is True

    def test_missing_keys_are_prompted_and_saved(
        self, runner: CliRunner, tmp_path: Path, mock_coordinator
    ) -> None:
        """A missing credentials file triggers prompts before validation."""
        creds_file = tmp_path / "fresh" / "credentials.yaml"

        result = runner.invoke(
            cli,
            ["--credentials-file", str(creds_file), "auth", "validate"],
            input="pub\npriv\npriv\n",
        )

        assert result.exit_code == 0
        assert CredentialStore(creds_file).load() == TelldusCredentials("pub", "priv")
        mock_coordinator.return_value.validate.assert_called_once_with(
            TelldusCredentials("pub", "priv")
        )

    def test_auth_error_exits_nonzero(
        self, runner: CliRunner, creds_file: Path, mock_coordinator
    ) -> None:
        """Authentication failures print an error and exit 1."""
        mock_coordinator.return_value.validate.side_effect = AuthorizationDeniedError()

        result = runner.invoke(cli, ["--credentials-file", str(creds_file), "auth", "validate"])

        assert result.exit_code == 1
        assert "Error: OAuth authorization was denied" in result.output

    def test_rejected_after_retry_exits_nonzero(
        self, runner: CliRunner, creds_file: Path, mock_coordinator
    ) -> None:
        mock_coordinator.return_value.validate.side_effect = UnauthorizedError()

        result = runner.invoke(cli, ["--credentials-file", str(creds_file), "auth", "validate"])

        assert result.exit_code == 1
        assert "please re-authorize" in result.output

    def test_corrupt_credentials_file(
        self, runner: CliRunner, tmp_path: Path, mock_coordinator
    ) -> None:
        creds_file = tmp_path / "credentials.yaml"
        creds_file.write_text("- not\n- a mapping\n")

        result = runner.invoke(cli, ["--credentials-file", str(creds_file), "auth", "validate"])

        assert result.exit_code == 1
        assert "expected a mapping" in result.output
        mock_coordinator.return_value.validate.assert_not_called()

    def test_invalid_environment_config(self, runner: CliRunner, creds_file: Path) -> None:
        result = runner.invoke(
            cli,
            ["--credentials-file", str(creds_file), "auth", "validate"],
            env={"TELLTALES_REQUEST_TIMEOUT": "later"},
        )

        assert result.exit_code == 1
        assert "Invalid timeout" in result.output

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "telltales" in result.output


class TestRevokeCommand:
    """Tests for 'telltales auth revoke'."""

    def test_revoke_clears_tokens(self, runner: CliRunner, creds_file: Path) -> None:
        result = runner.invoke(cli, ["--credentials-file", str(creds_file), "auth", "revoke"])

        assert result.exit_code == 0
        assert "Stored access token removed" in result.output
        assert CredentialStore(creds_file).load() == TelldusCredentials("pub", "priv")

    def test_revoke_without_token(self, runner: CliRunner, tmp_path: Path) -> None:
        creds_file = tmp_path / "credentials.yaml"
        CredentialStore(creds_file).save(TelldusCredentials("pub", "priv"))

        result = runner.invoke(cli, ["--credentials-file", str(creds_file), "auth", "revoke"])

        assert result.exit_code == 0
        assert "No stored access token." in result.output

    def test_revoke_without_file(self, runner: CliRunner, tmp_path: Path) -> None:
        creds_file = tmp_path / "missing.yaml"

        result = runner.invoke(cli, ["--credentials-file", str(creds_file), "auth", "revoke"])

        assert result.exit_code == 0
        assert "No stored access token." in result.output
        assert not creds_file.exists()


class TestDevicesCommands:
    """Tests for 'telltales devices' and 'telltales sensors'."""

    ENTRIES = [
        Entry(Category.SENSOR, "9", "Outdoor", "temp=21.5@0"),
        Entry(Category.DEVICE, "5", "Lamp", "state=1"),
        Entry(Category.CONTROLLER, "1", "Hub", None),
    ]

    def test_list_all(
        self, runner: CliRunner, creds_file: Path, mock_coordinator, mock_client
    ) -> None:
        """The listing is sorted and rendered as a table."""
        mock_client.list_all.return_value = list(self.ENTRIES)

        result = runner.invoke(cli, ["--credentials-file", str(creds_file), "devices", "list"])

        assert result.exit_code == 0
        assert "Authenticated as Ada Lovelace." in result.output
        lines = result.output.splitlines()
        header = next(i for i, line in enumerate(lines) if line.startswith("TYPE"))
        assert lines[header + 1].startswith("controller")
        assert lines[header + 1].rstrip().endswith("-")
        assert lines[header + 2].startswith("device")
        assert lines[header + 3].startswith("sensor")

    def test_devices_group_defaults_to_list(
        self, runner: CliRunner, creds_file: Path, mock_coordinator, mock_client
    ) -> None:
        mock_client.list_all.return_value = []

        result = runner.invoke(cli, ["--credentials-file", str(creds_file), "devices"])

        assert result.exit_code == 0
        assert "No resources returned for the selected filter." in result.output

    @pytest.mark.parametrize(
        "kind, method",
        [
            ("controllers", "list_controllers"),
            ("devices", "list_devices"),
            ("sensors", "list_sensors"),
        ],
    )
    def test_list_kind_filter(
        self, runner: CliRunner, creds_file: Path, mock_coordinator, mock_client, kind, method
    ) -> None:
        getattr(mock_client, method).return_value = []

        result = runner.invoke(
            cli, ["--credentials-file", str(creds_file), "devices", "list", "--kind", kind]
        )

        assert result.exit_code == 0
        getattr(mock_client, method).assert_called_once_with()
        mock_client.list_all.assert_not_called()

    def test_list_json(
        self, runner: CliRunner, creds_file: Path, mock_coordinator, mock_client
    ) -> None:
        mock_client.list_devices.return_value = [Entry(Category.DEVICE, "5", "Lamp", "state=1")]

        result = runner.invoke(
            cli,
            ["--credentials-file", str(creds_file), "--json", "devices", "list", "-k", "devices"],
        )

        assert result.exit_code == 0
        payload = json.loads(result.output[result.output.index("[") :])
        assert payload == [
            {"category": "device", "id": "5", "name": "Lamp", "details": "state=1"}
        ]

    def test_client_uses_validated_credentials(
        self, runner: CliRunner, creds_file: Path, mock_coordinator
    ) -> None:
        """The REST client is built from the credentials that passed validation."""
        mock_coordinator.return_value.validate.return_value = AuthOutcome(
            tokens_refreshed=True, account_name=None, credentials=REFRESHED
        )
        with mock.patch("telltales.cli.device_commands.TelldusClient") as client_cls:
            client_cls.return_value.list_all.return_value = []

            result = runner.invoke(cli, ["--credentials-file", str(creds_file), "devices", "list"])

        assert result.exit_code == 0
        assert client_cls.call_args[0][0] == REFRESHED

    def test_list_api_error(
        self, runner: CliRunner, creds_file: Path, mock_coordinator, mock_client
    ) -> None:
        mock_client.list_all.side_effect = TelldusAPIError("Telldus Live API error (500): boom")

        result = runner.invoke(cli, ["--credentials-file", str(creds_file), "devices", "list"])

        assert result.exit_code == 1
        assert "Error: Telldus Live API error (500): boom" in result.output

    def test_device_info(
        self, runner: CliRunner, creds_file: Path, mock_coordinator, mock_client
    ) -> None:
        mock_client.device_info.return_value = {"id": "5", "name": "Lamp", "methods": 3}

        result = runner.invoke(
            cli, ["--credentials-file", str(creds_file), "devices", "info", "5"]
        )

        assert result.exit_code == 0
        mock_client.device_info.assert_called_once_with("5")
        assert "Lamp" in result.output

    @pytest.mark.parametrize(
        "command, method",
        [
            ("on", "turn_on"),
            ("off", "turn_off"),
            ("bell", "bell"),
            ("up", "up"),
            ("down", "down"),
            ("stop", "stop"),
        ],
    )
    def test_device_methods(
        self, runner: CliRunner, creds_file: Path, mock_coordinator, mock_client, command, method
    ) -> None:
        getattr(mock_client, method).return_value = "success"

        result = runner.invoke(
            cli, ["--credentials-file", str(creds_file), "devices", command, "5"]
        )

        assert result.exit_code == 0
        getattr(mock_client, method).assert_called_once_with("5")
        assert f"Sent {command} to device 5: success" in result.output

    def test_dim(
        self, runner: CliRunner, creds_file: Path, mock_coordinator, mock_client
    ) -> None:
        mock_client.dim.return_value = "success"

        result = runner.invoke(
            cli, ["--credentials-file", str(creds_file), "devices", "dim", "5", "128"]
        )

        assert result.exit_code == 0
        mock_client.dim.assert_called_once_with("5", 128)
        assert "Dimmed device 5 to 128: success" in result.output

    def test_dim_out_of_range(
        self, runner: CliRunner, creds_file: Path, mock_coordinator, mock_client
    ) -> None:
        result = runner.invoke(
            cli, ["--credentials-file", str(creds_file), "devices", "dim", "5", "300"]
        )

        assert result.exit_code == 2
        mock_client.dim.assert_not_called()

    def test_sensor_info(
        self, runner: CliRunner, creds_file: Path, mock_coordinator, mock_client
    ) -> None:
        mock_client.sensor_info.return_value = {
            "id": "9",
            "data": [{"name": "temp", "value": "21.5"}],
        }

        result = runner.invoke(
            cli, ["--credentials-file", str(creds_file), "--json", "sensors", "info", "9"]
        )

        assert result.exit_code == 0
        mock_client.sensor_info.assert_called_once_with("9")
        assert '"temp"' in result.output
