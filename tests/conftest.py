"""
Shared fixtures: throwaway certificates, in-process TLS and plain TCP
servers.
"""

from __future__ import annotations

import datetime
import socket
import ssl
import threading
from typing import List, Optional, Tuple

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID


# ---------------------------------------------------------------------------
# Certificates
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def cert_files(tmp_path_factory) -> Tuple[str, str]:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "localhost")])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .sign(key, hashes.SHA256())
    )

    directory = tmp_path_factory.mktemp("certs")
    cert_path = directory / "server.crt"
    key_path = directory / "server.key"
    cert_path.write_bytes(cert.public_bytes(serialization.Encoding.PEM))
    key_path.write_bytes(key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.TraditionalOpenSSL,
        serialization.NoEncryption(),
    ))
    return str(cert_path), str(key_path)


def server_context(
    cert_files: Tuple[str, str],
    min_version: ssl.TLSVersion,
    max_version: ssl.TLSVersion,
    ciphers: Optional[List[str]] = None,
) -> ssl.SSLContext:
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    context.load_cert_chain(*cert_files)
    cipher_string = ":".join(ciphers) if ciphers else "ALL"
    context.set_ciphers(cipher_string + ":@SECLEVEL=0")
    context.minimum_version = min_version
    context.maximum_version = max_version
    return context


# ---------------------------------------------------------------------------
# Servers
# ---------------------------------------------------------------------------

class LocalServer:
    """
    Accepts connections on 127.0.0.1 in a background thread.

    With a context, each connection gets a TLS handshake. Without one, the
    server reads the client's first bytes and answers with plain HTTP.
    """

    def __init__(self, context: Optional[ssl.SSLContext] = None):
        self.context = context
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.listen(16)
        self.sock.settimeout(0.2)
        self.address, self.port = self.sock.getsockname()
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)

    def __enter__(self) -> "LocalServer":
        self._thread.start()
        return self

    def __exit__(self, *exc):
        self._stop.set()
        self._thread.join(timeout=5)
        self.sock.close()

    def _serve(self):
        while not self._stop.is_set():
            try:
                conn, _ = self.sock.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            conn.settimeout(2)
            try:
                self._handle(conn)
            except OSError:
                pass
            finally:
                conn.close()

    def _handle(self, conn: socket.socket):
        if self.context is None:
            conn.recv(1024)
            conn.sendall(b"HTTP/1.1 400 Bad Request\r\nContent-Length: 0\r\n\r\n")
            return
        with self.context.wrap_socket(conn, server_side=True) as tls:
            try:
                tls.recv(1)
            except OSError:
                pass


@pytest.fixture
def tls_server(cert_files):
    """Factory: tls_server(min, max, ciphers=None) -> running LocalServer."""
    servers = []

    def _start(min_version, max_version, ciphers=None) -> LocalServer:
        server = LocalServer(server_context(cert_files, min_version, max_version, ciphers))
        servers.append(server)
        return server.__enter__()

    yield _start

    for server in servers:
        server.__exit__(None, None, None)


@pytest.fixture
def plain_server():
    with LocalServer() as server:
        yield server


@pytest.fixture
def closed_port() -> int:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


def _tls10_handshake_works(cert_files) -> bool:
    """Can this interpreter's OpenSSL do TLS 1.0 on both ends?"""
    context = server_context(cert_files, ssl.TLSVersion.TLSv1, ssl.TLSVersion.TLSv1)
    client = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    client.check_hostname = False
    client.verify_mode = ssl.CERT_NONE
    try:
        client.set_ciphers("ALL:@SECLEVEL=0")
        client.minimum_version = ssl.TLSVersion.TLSv1
        client.maximum_version = ssl.TLSVersion.TLSv1
    except (ValueError, ssl.SSLError):
        return False

    with LocalServer(context) as server:
        try:
            with socket.create_connection((server.address, server.port), timeout=2) as sock:
                with client.wrap_socket(sock):
                    return True
        except OSError:
            return False


@pytest.fixture(scope="session")
def legacy_tls(cert_files):
    """Skip the test when the local TLS stack cannot negotiate TLS 1.0/1.1."""
    if not (ssl.HAS_TLSv1 and ssl.HAS_TLSv1_1) or not _tls10_handshake_works(cert_files):
        pytest.skip("local OpenSSL cannot negotiate TLS 1.0")
