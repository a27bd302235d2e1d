"""TLS trust anchor for Hue bridges.

Hue bridges with firmware v1.24.0 or later serve HTTPS with a certificate
issued by the Signify root CA, whose subject and serial number are the
bridge id.  The certificate is not issued for the bridge's IP address, so
hostname checking is replaced by :meth:`TrustAnchor.check_server_identity`.
"""

from __future__ import annotations

import logging
import ssl
from dataclasses import dataclass, field

from cryptography import x509
from cryptography.x509.oid import NameOID

logger = logging.getLogger(__name__)

# Root CA certificates for Hue bridges, see
# https://developers.meethue.com/develop/application-design-guidance/using-https/
ROOT_CERTIFICATES: tuple[str, ...] = (
    """-----BEGIN CERTIFICATE-----
MIICMjCCAdigAwIBAgIUO7FSLbaxikuXAljzVaurLXWmFw4wCgYIKoZIzj0EAwIw
OTELMAkGA1UEBhMCTkwxFDASBgNVBAoMC1BoaWxpcHMgSHVlMRQwEgYDVQQDDAty
b290LWJyaWRnZTAiGA8yMDE3MDEwMTAwMDAwMFoYDzIwMzgwMTE5MDMxNDA3WjA5
MQswCQYDVQQGEwJOTDEUMBIGA1UECgwLUGhpbGlwcyBIdWUxFDASBgNVBAMMC3Jv
b3QtYnJpZGdlMFkwEwYHKoZIzj0CAQYIKoZIzj0DAQcDQgAEjNw2tx2AplOf9x86
aTdvEcL1FU65QDxziKvBpW9XXSIcibAeQiKxegpq8Exbr9v6LBnYbna2VcaK0G22
jOKkTqOBuTCBtjAPBgNVHRMBAf8EBTADAQH/MA4GA1UdDwEB/wQEAwIBhjAdBgNV
HQ4EFgQUZ2ONTFrDT6o8ItRnKfqWKnHFGmQwdAYDVR0jBG0wa4AUZ2ONTFrDT6o8
ItRnKfqWKnHFGmShPaQ7MDkxCzAJBgNVBAYTAk5MMRQwEgYDVQQKDAtQaGlsaXBz
IEh1ZTEUMBIGA1UEAwwLcm9vdC1icmlkZ2WCFDuxUi22sYpLlwJY81Wrqy11phcO
MAoGCCqGSM49BAMCA0gAMEUCIEBYYEOsa07TH7E5MJnGw557lVkORgit2Rm1h3B2
sFgDAiEA1Fj/C3AN5psFMjo0//mrQebo0eKd3aWRx+pQY08mk48=
-----END CERTIFICATE-----
""",
    """-----BEGIN CERTIFICATE-----
MIIBzDCCAXOgAwIBAgICEAAwCgYIKoZIzj0EAwIwPDELMAkGA1UEBhMCTkwxFDAS
BgNVBAoMC1NpZ25pZnkgSHVlMRcwFQYDVQQDDA5IdWUgUm9vdCBDQSAwMTAgFw0y
NTAyMjUwMDAwMDBaGA8yMDUwMTIzMTIzNTk1OVowPDELMAkGA1UEBhMCTkwxFDAS
BgNVBAoMC1NpZ25pZnkgSHVlMRcwFQYDVQQDDA5IdWUgUm9vdCBDQSAwMTBZMBMG
ByqGSM49AgEGCCqGSM49AwEHA0IABFfOO0jfSAUXGQ9kjEDzyBrcMQ3ItyA5krE+
cyvb1Y3xFti7KlAad8UOnAx0FBLn7HZrlmIwm1QnX0fK3LPM13mjYzBhMB0GA1Ud
DgQWBBTF1pSpsCASX/z0VHLigxU2CAaqoTAfBgNVHSMEGDAWgBTF1pSpsCASX/z0
VHLigxU2CAaqoTAPBgNVHRMBAf8EBTADAQH/MA4GA1UdDwEB/wQEAwIBBjAKBggq
hkjOPQQDAgNHADBEAiAk7duT+IHbOGO4UUuGLAEpyYejGZK9Z7V9oSfnvuQ5BQIg
IYSgwwxHXm73/JgcU9lAM6c8Bmu3UE3kBIUwBs1qXFw=
-----END CERTIFICATE-----
""",
)

_COUNTRY = "NL"
_ORGANIZATION = "Philips Hue"
_ROOT_COMMON_NAME = "root-bridge"


def _name_attribute(name: x509.Name, oid: x509.ObjectIdentifier) -> str | None:
    attributes = name.get_attributes_for_oid(oid)
    if not attributes:
        return None
    value = attributes[0].value
    return value.decode() if isinstance(value, bytes) else value


@dataclass
class TrustAnchor:
    """Root certificates and identity check for one bridge.

    :param bridge_id: The bridge id, 16 upper-case hex digits.
    :param root_certificates: PEM encoded root CA certificates.
    """

    bridge_id: str
    root_certificates: tuple[str, ...] = field(default=ROOT_CERTIFICATES)

    def build_ssl_context(self) -> ssl.SSLContext:
        """Build a client context trusting only the bridge root CAs."""
        ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_REQUIRED
        ctx.load_verify_locations(cadata="".join(self.root_certificates))
        logger.debug("TLS context created for bridge %s", self.bridge_id)
        return ctx

    def check_server_identity(self, der: bytes | None) -> None:
        """Check that the peer certificate belongs to this bridge.

        :param der: DER encoded peer certificate; ``None`` or empty skips
            the check.
        :raises ssl.SSLCertVerificationError: On a subject, serial number,
            or issuer mismatch.
        """
        if not der:
            return
        cert = x509.load_der_x509_certificate(der)
        bridge_id = self.bridge_id.upper()

        subject_cn = _name_attribute(cert.subject, NameOID.COMMON_NAME) or ""
        if (
            _name_attribute(cert.subject, NameOID.COUNTRY_NAME) != _COUNTRY
            or _name_attribute(cert.subject, NameOID.ORGANIZATION_NAME) != _ORGANIZATION
            or subject_cn.upper() != bridge_id
            or f"{cert.serial_number:016X}"[-16:] != bridge_id
        ):
            msg = "invalid SSL certificate"
            raise ssl.SSLCertVerificationError(msg)

        issuer_cn = _name_attribute(cert.issuer, NameOID.COMMON_NAME) or ""
        if (
            _name_attribute(cert.issuer, NameOID.COUNTRY_NAME) != _COUNTRY
            or _name_attribute(cert.issuer, NameOID.ORGANIZATION_NAME) != _ORGANIZATION
            or (issuer_cn.upper() != bridge_id and issuer_cn != _ROOT_COMMON_NAME)
        ):
            msg = "invalid issuer certificate"
            raise ssl.SSLCertVerificationError(msg)
