"""
ssl_check.py

Certificate info providers for the scanner.

A provider is any callable taking a context id and returning a
CertificateInfo or None. Two are shipped:
    - no_certificate_info(context_id) -> None
    - fetch_certificate_info(hostname) -> CertificateInfo or None
"""

import logging
import os
import socket
import ssl
from typing import Optional

from cryptography import x509

from .models import CertificateInfo

logger = logging.getLogger("ssl_check")

CERT_TIMEOUT = float(os.getenv("URLSENTRY_CERT_TIMEOUT", "5"))


def no_certificate_info(context_id: Optional[str]) -> Optional[CertificateInfo]:
    return None


def _get_certificate(domain: str, port: int = 443, timeout: float = CERT_TIMEOUT) -> Optional[bytes]:
    """Fetch the server's certificate (DER bytes), or None."""
    ctx = ssl.create_default_context()
    try:
        with socket.create_connection((domain, port), timeout=timeout) as sock:
            with ctx.wrap_socket(sock, server_hostname=domain) as conn:
                return conn.getpeercert(True)
    except (OSError, ValueError) as e:
        logger.debug("Certificate fetch failed for %s: %s", domain, e)
        return None


def certificate_info_from_der(der_cert: bytes) -> CertificateInfo:
    cert = x509.load_der_x509_certificate(der_cert)
    duration = cert.not_valid_after_utc - cert.not_valid_before_utc
    return CertificateInfo(
        issuer=cert.issuer.rfc4514_string(),
        validity_duration_days=int(round(duration.total_seconds() / 86400)),
    )


def fetch_certificate_info(hostname: Optional[str]) -> Optional[CertificateInfo]:
    """TLS handshake against hostname:443 and summarize the leaf certificate."""
    if not hostname:
        return None
    der_cert = _get_certificate(hostname)
    if not der_cert:
        return None
    try:
        return certificate_info_from_der(der_cert)
    except ValueError as e:
        logger.warning("Certificate parse error for %s: %s", hostname, e)
        return None
