"""Tests for the error taxonomy."""

from companion_client.core.errors import (
    CompanionError,
    ConfigurationError,
    ExchangeFailedError,
    LoginError,
    MalformedResponseError,
    NoCodeError,
    RecoveryError,
    TransportError,
    TransportErrorKind,
    create_user_friendly_message,
    is_credential_expired,
)


class TestErrors:
    """Test cases for error types."""

    def test_hierarchy(self):
        assert issubclass(TransportError, CompanionError)
        for cls in (NoCodeError, ExchangeFailedError, MalformedResponseError):
            assert issubclass(cls, LoginError)
        assert not issubclass(RecoveryError, LoginError)

    def test_transport_error_to_dict(self):
        error = TransportError("expired", status=401, code=101, body={"code": 101})
        data = error.to_dict()

        assert data["type"] == "TransportError"
        assert data["kind"] == "http_status"
        assert data["status"] == 401
        assert data["code"] == 101
        assert data["body"] == {"code": 101}

    def test_str_includes_status_and_code(self):
        assert str(TransportError("expired", status=401, code=101)) == "expired (Status: 401) (Code: 101)"

    def test_exchange_failed_copies_transport_fields(self):
        transport_error = TransportError("bad code", status=400, code=40001)
        error = ExchangeFailedError(transport_error)

        assert error.status == 400
        assert error.code == 40001
        assert error.original_error is transport_error
        assert "bad code" in error.message

    def test_recovery_error_wraps_login_error(self):
        login_error = NoCodeError()
        error = RecoveryError(login_error)
        assert error.login_error is login_error
        assert error.original_error is login_error

    def test_is_credential_expired(self):
        assert is_credential_expired(TransportError("x", code=101))
        assert is_credential_expired(TransportError("x", status=401))
        assert not is_credential_expired(TransportError("x", status=403))
        assert not is_credential_expired(TransportError("x", kind=TransportErrorKind.NETWORK))


class TestUserFriendlyMessages:
    """Test cases for create_user_friendly_message."""

    def test_recovery_failure_asks_for_restart(self):
        message = create_user_friendly_message(RecoveryError(NoCodeError()))
        assert "restart" in message

    def test_network_failure(self):
        message = create_user_friendly_message(TransportError("x", kind=TransportErrorKind.NETWORK))
        assert "Network error" in message

    def test_exchange_over_network(self):
        error = ExchangeFailedError(TransportError("x", kind=TransportErrorKind.NETWORK))
        assert "could not be reached" in create_user_friendly_message(error)

    def test_server_message_is_shown_for_client_errors(self):
        assert create_user_friendly_message(TransportError("Not enough points", status=400)) == "Not enough points"

    def test_configuration_error_names_field(self):
        error = ConfigurationError("missing", config_field="login_code")
        assert "login_code" in create_user_friendly_message(error)
