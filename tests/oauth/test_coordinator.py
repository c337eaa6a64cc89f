"""Tests for OAuth coordinator module."""

from unittest import mock

import pytest
import requests

from telltales.credentials import TelldusCredentials
from telltales.oauth.config import TelldusOAuthConfig
from telltales.oauth.coordinator import AuthOutcome, OAuthCoordinator
from telltales.oauth.exceptions import (
    AuthorizationDeniedError,
    MissingConsumerKeysError,
    UnauthorizedError,
    VerificationFailedError,
)
from telltales.oauth.token_exchange import TempToken


class TestOAuthCoordinator:
    """Tests for OAuthCoordinator class."""

    @pytest.fixture
    def config(self):
        """Create test OAuth config."""
        return TelldusOAuthConfig(base_url="https://telldus.example", callback_timeout=42)

    @pytest.fixture
    def session(self):
        """Create a mock HTTP session."""
        return mock.Mock(spec=requests.Session)

    @pytest.fixture
    def coordinator(self, config, session):
        """Coordinator whose token exchange is mocked out."""
        coordinator = OAuthCoordinator(config, session=session)
        coordinator.exchange = mock.Mock()
        coordinator.exchange.request_token.return_value = TempToken(token="T", secret="S")
        coordinator.exchange.authorize_url.return_value = (
            "https://telldus.example/oauth/authorize?oauth_token=T"
        )
        coordinator.exchange.exchange_access_token.return_value = ("AT", "AS")
        return coordinator

    @pytest.fixture
    def mock_server(self):
        """Patch the callback listener class."""
        with mock.patch("telltales.oauth.coordinator.OAuthCallbackServer") as server_cls:
            server_cls.return_value.callback_url = "http://127.0.0.1:5555/oauth/callback"
            yield server_cls

    @pytest.fixture
    def mock_flow(self):
        """Patch verifier acquisition."""
        with mock.patch(
            "telltales.oauth.coordinator.run_authorization_flow", return_value="V"
        ) as flow:
            yield flow

    @pytest.fixture
    def mock_verify(self):
        """Patch profile verification."""
        with mock.patch("telltales.oauth.coordinator.verify_profile") as verify:
            yield verify

    def test_coordinator_initialization(self, config, session):
        """OAuthCoordinator keeps config and session."""
        coordinator = OAuthCoordinator(config, session=session)

        assert coordinator.config is config
        assert coordinator.session is session
        assert coordinator.exchange.session is session

    @mock.patch.dict("os.environ", {"TELLTALES_API_URL": "http://localhost:9000"})
    def test_coordinator_loads_config_from_env(self):
        """OAuthCoordinator loads config from environment if not provided."""
        coordinator = OAuthCoordinator()

        assert coordinator.config.base_url == "http://localhost:9000"
        assert coordinator.session.headers["User-Agent"].startswith("telltales-cli/")

    @pytest.mark.parametrize(
        "credentials",
        [
            TelldusCredentials(public_key="", private_key="priv"),
            TelldusCredentials(public_key="pub", private_key="  "),
        ],
    )
    def test_missing_consumer_keys(
        self, coordinator, session, mock_server, mock_verify, credentials
    ):
        """Blank consumer keys fail before any network activity."""
        with pytest.raises(MissingConsumerKeysError):
            coordinator.validate(credentials)

        mock_server.assert_not_called()
        mock_verify.assert_not_called()
        coordinator.exchange.request_token.assert_not_called()
        session.get.assert_not_called()
        session.post.assert_not_called()

    def test_valid_stored_tokens(self, coordinator, mock_server, mock_verify):
        """Working stored tokens are verified once, no handshake."""
        credentials = TelldusCredentials("pub", "priv", "tok", "sec")
        mock_verify.return_value = "Ada Lovelace"

        outcome = coordinator.validate(credentials)

        assert outcome == AuthOutcome(
            tokens_refreshed=False, account_name="Ada Lovelace", credentials=credentials
        )
        mock_verify.assert_called_once()
        mock_server.assert_not_called()
        coordinator.exchange.request_token.assert_not_called()

    def test_no_stored_token_runs_handshake(
        self, coordinator, config, mock_server, mock_flow, mock_verify
    ):
        """Without a token a handshake runs and the new pair is verified."""
        credentials = TelldusCredentials("pub", "priv")
        mock_verify.return_value = None

        outcome = coordinator.validate(credentials)

        assert outcome.tokens_refreshed is True
        assert outcome.account_name is None
        assert outcome.credentials == TelldusCredentials("pub", "priv", "AT", "AS")

        mock_server.assert_called_once_with(config)
        mock_server.return_value.start.assert_called_once()
        coordinator.exchange.request_token.assert_called_once_with(
            "pub", "priv", "http://127.0.0.1:5555/oauth/callback"
        )
        mock_flow.assert_called_once_with(
            mock_server.return_value,
            "https://telldus.example/oauth/authorize?oauth_token=T",
            prompt=None,
            open_browser=False,
            timeout=42,
        )
        coordinator.exchange.exchange_access_token.assert_called_once_with(
            "pub", "priv", TempToken(token="T", secret="S"), "V"
        )
        verified_with = mock_verify.call_args[0][2]
        assert verified_with.token == "AT"
        assert verified_with.token_secret == "AS"

    def test_partial_token_runs_handshake(self, coordinator, mock_server, mock_flow, mock_verify):
        """A token without its secret counts as no token."""
        mock_verify.return_value = "ada"

        outcome = coordinator.validate(TelldusCredentials("pub", "priv", "tok", ""))

        assert outcome.tokens_refreshed is True
        mock_server.assert_called_once()

    def test_rejected_tokens_reauthorize_once(
        self, coordinator, mock_server, mock_flow, mock_verify, capsys
    ):
        """A 401 on stored tokens triggers exactly one more handshake."""
        credentials = TelldusCredentials("pub", "priv", "old", "old-secret")
        mock_verify.side_effect = [UnauthorizedError(), "Ada"]

        outcome = coordinator.validate(credentials)

        assert outcome.tokens_refreshed is True
        assert outcome.account_name == "Ada"
        assert outcome.credentials.token == "AT"
        assert mock_verify.call_count == 2
        assert mock_server.call_count == 1
        assert "Stored tokens were rejected" in capsys.readouterr().out

    def test_new_tokens_rejected_propagates(
        self, coordinator, mock_server, mock_flow, mock_verify
    ):
        """If the fresh tokens are rejected too, the error propagates."""
        mock_verify.side_effect = [UnauthorizedError(), UnauthorizedError()]

        with pytest.raises(UnauthorizedError):
            coordinator.validate(TelldusCredentials("pub", "priv", "old", "old-secret"))

        assert mock_server.call_count == 1
        assert mock_verify.call_count == 2

    def test_handshake_then_rejected_gets_one_more(
        self, coordinator, mock_server, mock_flow, mock_verify
    ):
        """A first-time handshake whose token is rejected is retried once."""
        mock_verify.side_effect = [UnauthorizedError(), UnauthorizedError()]

        with pytest.raises(UnauthorizedError):
            coordinator.validate(TelldusCredentials("pub", "priv"))

        assert mock_server.call_count == 2

    def test_non_401_failure_is_final(self, coordinator, mock_server, mock_verify):
        """A verification failure other than 401 does not re-authorize."""
        mock_verify.side_effect = VerificationFailedError("failure")

        with pytest.raises(VerificationFailedError):
            coordinator.validate(TelldusCredentials("pub", "priv", "tok", "sec"))

        mock_server.assert_not_called()

    def test_handshake_error_propagates(self, coordinator, mock_server, mock_flow, mock_verify):
        """Errors from the token exchange surface unchanged."""
        coordinator.exchange.request_token.side_effect = AuthorizationDeniedError()

        with pytest.raises(AuthorizationDeniedError):
            coordinator.validate(TelldusCredentials("pub", "priv"))

        mock_flow.assert_not_called()
        mock_verify.assert_not_called()

    def test_input_credentials_not_mutated(
        self, coordinator, mock_server, mock_flow, mock_verify
    ):
        """validate() never modifies the credentials it was given."""
        credentials = TelldusCredentials("pub", "priv", "old", "old-secret")
        mock_verify.side_effect = [UnauthorizedError(), "Ada"]

        coordinator.validate(credentials)

        assert credentials == TelldusCredentials("pub", "priv", "old", "old-secret")

    def test_prompt_and_browser_forwarded(
        self, config, session, mock_server, mock_flow, mock_verify
    ):
        """Prompt and open_browser reach the verifier acquisition."""
        prompt = mock.Mock()
        coordinator = OAuthCoordinator(config, session=session, prompt=prompt, open_browser=True)
        coordinator.exchange = mock.Mock()
        coordinator.exchange.request_token.return_value = TempToken(token="T", secret="S")
        coordinator.exchange.exchange_access_token.return_value = ("AT", "AS")

        coordinator.authorize(TelldusCredentials("pub", "priv"))

        assert mock_flow.call_args[1]["prompt"] is prompt
        assert mock_flow.call_args[1]["open_browser"] is True
