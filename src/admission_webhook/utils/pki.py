"""
Self-signed PKI bootstrap for the webhook's serving certificate.

A fresh CA and leaf credential are generated on every start. The CA private
key never leaves the process; only the CA certificate is exported, as the
``caBundle`` of the webhook registrations.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from ..constants import (
    CERTIFICATE_VALIDITY_DAYS,
    DEFAULT_CLUSTER_DOMAIN,
    DEFAULT_SUBJECT_COUNTRY,
    DEFAULT_SUBJECT_LOCALITY,
    DEFAULT_SUBJECT_ORGANIZATION,
    DEFAULT_SUBJECT_ORGANIZATIONAL_UNIT,
    DEFAULT_SUBJECT_PROVINCE,
    MIN_RSA_KEY_SIZE,
    RSA_PUBLIC_EXPONENT,
)
from ..errors import CertificateEncodingError, FilesystemError, KeyGenerationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubjectIdentity:
    """Distinguished name fields shared by the CA and the leaf."""

    country: str = DEFAULT_SUBJECT_COUNTRY
    province: str = DEFAULT_SUBJECT_PROVINCE
    locality: str = DEFAULT_SUBJECT_LOCALITY
    organization: str = DEFAULT_SUBJECT_ORGANIZATION
    organizational_unit: str = DEFAULT_SUBJECT_ORGANIZATIONAL_UNIT

    def to_name(self, common_name: str | None = None) -> x509.Name:
        attributes = [
            x509.NameAttribute(NameOID.COUNTRY_NAME, self.country),
            x509.NameAttribute(NameOID.STATE_OR_PROVINCE_NAME, self.province),
            x509.NameAttribute(NameOID.LOCALITY_NAME, self.locality),
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, self.organization),
            x509.NameAttribute(
                NameOID.ORGANIZATIONAL_UNIT_NAME, self.organizational_unit
            ),
        ]
        if common_name:
            attributes.append(x509.NameAttribute(NameOID.COMMON_NAME, common_name))
        return x509.Name(attributes)


@dataclass
class CertificateAuthority:
    """Self-signed CA used to sign the leaf credential."""

    private_key: rsa.RSAPrivateKey = field(repr=False)
    certificate: x509.Certificate
    subject: SubjectIdentity
    not_before: datetime
    not_after: datetime

    @property
    def certificate_pem(self) -> bytes:
        """PEM encoded CA certificate, the trust bundle for the API server."""
        return self.certificate.public_bytes(serialization.Encoding.PEM)


@dataclass
class LeafCredential:
    """Serving certificate and key of the webhook listener."""

    private_key: rsa.RSAPrivateKey = field(repr=False)
    certificate: x509.Certificate
    dns_names: list[str]
    not_before: datetime
    not_after: datetime
    certificate_pem: bytes = field(repr=False)
    private_key_pem: bytes = field(repr=False)


def service_dns_names(
    service: str, namespace: str, cluster_domain: str = DEFAULT_CLUSTER_DOMAIN
) -> list[str]:
    """
    Build the in-cluster DNS names a Service is reachable under.

    Args:
        service: Service name
        namespace: Service namespace
        cluster_domain: Cluster DNS domain

    Returns:
        Short name, namespaced name, svc name and fully qualified name
    """
    return [
        service,
        f"{service}.{namespace}",
        f"{service}.{namespace}.svc",
        f"{service}.{namespace}.svc.{cluster_domain}",
    ]


def _generate_key(key_size: int) -> rsa.RSAPrivateKey:
    if key_size < MIN_RSA_KEY_SIZE:
        raise KeyGenerationError(
            f"RSA key size {key_size} is below the minimum of {MIN_RSA_KEY_SIZE} bits"
        )
    try:
        return rsa.generate_private_key(
            public_exponent=RSA_PUBLIC_EXPONENT, key_size=key_size
        )
    except (ValueError, UnsupportedAlgorithm) as e:
        raise KeyGenerationError(str(e), cause=e) from e


def _validity_window() -> tuple[datetime, datetime]:
    not_before = datetime.now(UTC)
    return not_before, not_before + timedelta(days=CERTIFICATE_VALIDITY_DAYS)


def generate_ca(
    subject: SubjectIdentity | None = None, key_size: int = MIN_RSA_KEY_SIZE
) -> CertificateAuthority:
    """
    Generate a self-signed certificate authority.

    Args:
        subject: Subject identity of the CA
        key_size: RSA modulus size in bits

    Returns:
        The generated certificate authority

    Raises:
        KeyGenerationError: If the key pair cannot be generated
        CertificateEncodingError: If the certificate cannot be built or signed
    """
    subject = subject or SubjectIdentity()
    private_key = _generate_key(key_size)
    not_before, not_after = _validity_window()
    name = subject.to_name()

    try:
        certificate = (
            x509.CertificateBuilder()
            .subject_name(name)
            .issuer_name(name)
            .public_key(private_key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(not_before)
            .not_valid_after(not_after)
            .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
            .add_extension(
                x509.KeyUsage(
                    digital_signature=True,
                    content_commitment=False,
                    key_encipherment=False,
                    data_encipherment=False,
                    key_agreement=False,
                    key_cert_sign=True,
                    crl_sign=True,
                    encipher_only=False,
                    decipher_only=False,
                ),
                critical=True,
            )
            .add_extension(
                x509.ExtendedKeyUsage(
                    [ExtendedKeyUsageOID.CLIENT_AUTH, ExtendedKeyUsageOID.SERVER_AUTH]
                ),
                critical=False,
            )
            .add_extension(
                x509.SubjectKeyIdentifier.from_public_key(private_key.public_key()),
                critical=False,
            )
            .sign(private_key, hashes.SHA256())
        )
    except (ValueError, TypeError) as e:
        raise CertificateEncodingError(f"CA certificate: {e}", cause=e) from e

    logger.info(f"Generated CA certificate valid until {not_after.isoformat()}")
    return CertificateAuthority(
        private_key=private_key,
        certificate=certificate,
        subject=subject,
        not_before=not_before,
        not_after=not_after,
    )


def issue_leaf(
    ca: CertificateAuthority,
    dns_names: list[str],
    common_name: str,
    key_size: int = MIN_RSA_KEY_SIZE,
) -> LeafCredential:
    """
    Issue a serving certificate signed by the CA.

    Args:
        ca: Issuing certificate authority
        dns_names: DNS Subject Alternative Names
        common_name: Subject common name
        key_size: RSA modulus size in bits

    Returns:
        The leaf credential with PEM encodings of certificate and key

    Raises:
        KeyGenerationError: If the key pair cannot be generated
        CertificateEncodingError: If the certificate cannot be built or signed
    """
    if not dns_names:
        raise CertificateEncodingError("leaf certificate needs at least one DNS name")

    private_key = _generate_key(key_size)
    not_before, not_after = _validity_window()

    try:
        certificate = (
            x509.CertificateBuilder()
            .subject_name(ca.subject.to_name(common_name))
            .issuer_name(ca.certificate.subject)
            .public_key(private_key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(not_before)
            .not_valid_after(not_after)
            .add_extension(
                x509.SubjectAlternativeName([x509.DNSName(n) for n in dns_names]),
                critical=False,
            )
            .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
            .add_extension(
                x509.KeyUsage(
                    digital_signature=True,
                    content_commitment=False,
                    key_encipherment=True,
                    data_encipherment=False,
                    key_agreement=False,
                    key_cert_sign=False,
                    crl_sign=False,
                    encipher_only=False,
                    decipher_only=False,
                ),
                critical=True,
            )
            .add_extension(
                x509.ExtendedKeyUsage(
                    [ExtendedKeyUsageOID.CLIENT_AUTH, ExtendedKeyUsageOID.SERVER_AUTH]
                ),
                critical=False,
            )
            .add_extension(
                x509.AuthorityKeyIdentifier.from_issuer_public_key(
                    ca.private_key.public_key()
                ),
                critical=False,
            )
            .sign(ca.private_key, hashes.SHA256())
        )
        certificate_pem = certificate.public_bytes(serialization.Encoding.PEM)
        private_key_pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption(),
        )
    except (ValueError, TypeError) as e:
        raise CertificateEncodingError(f"leaf certificate: {e}", cause=e) from e

    logger.info(f"Issued serving certificate for {', '.join(dns_names)}")
    return LeafCredential(
        private_key=private_key,
        certificate=certificate,
        dns_names=list(dns_names),
        not_before=not_before,
        not_after=not_after,
        certificate_pem=certificate_pem,
        private_key_pem=private_key_pem,
    )


def persist(leaf: LeafCredential, cert_path: str, key_path: str) -> None:
    """
    Write the leaf certificate and private key as PEM files.

    Parent directories are created as needed; the key file is readable by
    the owner only.

    Raises:
        FilesystemError: If either file cannot be written
    """
    for path, data, mode in (
        (cert_path, leaf.certificate_pem, 0o644),
        (key_path, leaf.private_key_pem, 0o600),
    ):
        try:
            target = Path(path)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
            os.chmod(target, mode)
        except OSError as e:
            raise FilesystemError(path, cause=e) from e

    logger.info(f"Wrote serving certificate to {cert_path} and key to {key_path}")
