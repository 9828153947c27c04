import ssl
from unittest import mock

import pytest

from tlsrelay.core.exceptions import CredentialError
from tlsrelay.models.credential_models import CredentialBundle
from tlsrelay.protocols import tls
from tlsrelay.protocols.tls import VerificationMode, build_tls_context

PEM = "-----BEGIN CERTIFICATE-----\nMIIB\n-----END CERTIFICATE-----\n"


@pytest.fixture
def fake_context():
    with mock.patch.object(tls.ssl, "SSLContext") as factory:
        yield factory.return_value


def test_missing_identity_files_are_fatal(tmp_path):
    bundle = CredentialBundle.from_paths(tmp_path / "none.crt", tmp_path / "none.key")

    with pytest.raises(CredentialError):
        build_tls_context(bundle)


def test_malformed_identity_is_fatal(tmp_path):
    cert = tmp_path / "my.crt"
    key = tmp_path / "my.key"
    cert.write_text("not a certificate")
    key.write_text("not a key")

    with pytest.raises(CredentialError):
        build_tls_context(CredentialBundle.from_paths(cert, key))


def test_mismatched_pair_is_fatal(fake_context):
    fake_context.load_cert_chain.side_effect = ssl.SSLError(116, "[X509: KEY_VALUES_MISMATCH]")

    with pytest.raises(CredentialError, match="KEY_VALUES_MISMATCH"):
        build_tls_context(CredentialBundle.from_paths("a.crt", "a.key"))


def test_trust_anchor_enables_chain_verification(fake_context):
    result = build_tls_context(CredentialBundle("a.crt", "a.key", trust_anchor=PEM))

    fake_context.load_verify_locations.assert_called_once_with(cadata=PEM)
    assert result.mode is VerificationMode.PEER_AND_CHAIN
    assert fake_context.verify_mode == ssl.CERT_REQUIRED


def test_missing_trust_anchor_degrades_and_logs(fake_context, tmp_path, caplog):
    bundle = CredentialBundle.from_paths("a.crt", "a.key", tmp_path / "absent-ca.pem")

    result = build_tls_context(bundle)

    assert bundle.trust_anchor is None
    assert result.mode is VerificationMode.PEER_ONLY
    assert fake_context.verify_mode == ssl.CERT_NONE
    assert fake_context.check_hostname is False
    assert "root CA" in caplog.text


def test_unparseable_trust_anchor_degrades(fake_context, caplog):
    fake_context.load_verify_locations.side_effect = ssl.SSLError("no certificate or crl found")

    result = build_tls_context(CredentialBundle("a.crt", "a.key", trust_anchor="garbage"))

    assert result.mode is VerificationMode.PEER_ONLY
    assert "could not be parsed" in caplog.text


def test_bundle_reads_trust_anchor_file(tmp_path):
    ca = tmp_path / "ca.pem"
    ca.write_text(PEM)

    bundle = CredentialBundle.from_paths("a.crt", "a.key", ca)

    assert bundle.trust_anchor == PEM
    assert bundle.has_trust_anchor
