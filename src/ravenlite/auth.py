"""Client certificate options for secured servers."""

from dataclasses import dataclass

from ravenlite.config import RavenConfig


@dataclass
class AuthOptions:
    """Client certificate used to authenticate against an https server.

    Attributes:
        certificate: Path to a PEM file holding certificate and key, or to the certificate only
        key: Path to the private key when it is kept apart from the certificate
        ca: CA bundle used to verify the server (None = system trust store)
    """

    certificate: str | None = None
    key: str | None = None
    ca: str | None = None

    @classmethod
    def from_env(cls) -> "AuthOptions | None":
        """Build options from RAVENDB_CERTIFICATE / RAVENDB_CA, or None if unset."""
        certificate = RavenConfig.get_certificate_path()
        if certificate is None:
            return None
        return cls(certificate=certificate, ca=RavenConfig.get_ca_path())

    @property
    def requests_cert(self) -> str | tuple[str, str] | None:
        """The value ``requests`` expects for its ``cert`` argument."""
        if self.certificate and self.key:
            return (self.certificate, self.key)
        return self.certificate

    @property
    def requests_verify(self) -> str | bool:
        """The value ``requests`` expects for its ``verify`` argument."""
        return self.ca or True
