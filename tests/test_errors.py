"""Tests for panelmanager/panel/errors.py — error envelope decoding."""

from panelmanager.panel.errors import (
    CredentialMissingError,
    RemoteError,
    decode_error_envelope,
    remote_error_from_response,
)
from panelmanager.panel.scope import CredentialScope


class TestDecodeErrorEnvelope:

    def test_entries_in_order(self):
        body = (
            b'{"errors": [{"code": "A", "status": "400", "detail": "first"},'
            b' {"code": "B", "status": "400", "detail": "second"}]}'
        )
        entries = decode_error_envelope(body)
        assert [e.detail for e in entries] == ["first", "second"]
        assert entries[0].code == "A"

    def test_not_json(self):
        assert decode_error_envelope(b"Service Unavailable") is None

    def test_empty_body(self):
        assert decode_error_envelope(b"") is None

    def test_wrong_shape(self):
        assert decode_error_envelope(b'{"error": "nope"}') is None
        assert decode_error_envelope(b'["errors"]') is None
        assert decode_error_envelope(b'{"errors": "text"}') is None


class TestRemoteErrorFromResponse:

    def test_uses_first_detail(self):
        error = remote_error_from_response(
            400, b'{"errors": [{"code": "x", "status": "400", "detail": "Bad egg"}]}'
        )
        assert isinstance(error, RemoteError)
        assert error.message == "Bad egg"
        assert error.detail == "Bad egg"
        assert error.upstream_status == 400

    def test_raw_fallback(self):
        error = remote_error_from_response(503, b"maintenance")
        assert error.message == "panel API error (status 503): maintenance"
        assert error.body == "maintenance"
        assert error.detail == ""


def test_credential_missing_names_scope():
    error = CredentialMissingError(CredentialScope.CLIENT)
    assert error.scope is CredentialScope.CLIENT
    assert "client" in str(error)
