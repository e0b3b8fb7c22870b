"""Scoped read grants for handing private files to other applications.

A ShareProvider maps files under named private roots to content URIs::

    /data/app/cache/report.pdf  ->  content://<authority>/cache/report.pdf

and issues ReadGrants: HMAC-signed, time-bounded permissions that bind
exactly one URI to exactly one consumer. Raw filesystem paths never
leave the provider.
"""

import logging
import os
import time
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote, unquote, urlsplit

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac

from .errors import GrantError, ResolutionError

logger = logging.getLogger(__name__)

DEFAULT_AUTHORITY = "filedrop.fileprovider"
DEFAULT_GRANT_TTL = 300  # seconds
SECRET_LENGTH = 32

ENV_GRANT_ID = "FILEDROP_GRANT_ID"
ENV_GRANT_CONSUMER = "FILEDROP_GRANT_CONSUMER"
ENV_GRANT_ISSUED = "FILEDROP_GRANT_ISSUED"
ENV_GRANT_EXPIRES = "FILEDROP_GRANT_EXPIRES"
ENV_GRANT_TOKEN = "FILEDROP_GRANT_TOKEN"


@dataclass(frozen=True)
class ReadGrant:
    """Permission for one consumer to read one URI until ``expires_at``."""

    grant_id: str
    uri: str
    consumer: str
    issued_at: float
    expires_at: float
    token: str

    def expired(self, now: float | None = None) -> bool:
        return (time.time() if now is None else now) >= self.expires_at

    def to_env(self) -> dict[str, str]:
        """Environment variables that carry this grant to a viewer process.

        The URI is not included; the viewer receives it as an argument.
        """
        return {
            ENV_GRANT_ID: self.grant_id,
            ENV_GRANT_CONSUMER: self.consumer,
            ENV_GRANT_ISSUED: repr(self.issued_at),
            ENV_GRANT_EXPIRES: repr(self.expires_at),
            ENV_GRANT_TOKEN: self.token,
        }

    @classmethod
    def from_env(cls, env: Mapping[str, str], uri: str) -> "ReadGrant":
        """Rebuild the grant a launcher passed for ``uri``.

        Raises:
            GrantError: If the environment carries no usable grant.
        """
        try:
            return cls(
                grant_id=env[ENV_GRANT_ID],
                uri=uri,
                consumer=env[ENV_GRANT_CONSUMER],
                issued_at=float(env.get(ENV_GRANT_ISSUED, "0")),
                expires_at=float(env[ENV_GRANT_EXPIRES]),
                token=env[ENV_GRANT_TOKEN],
            )
        except KeyError as e:
            raise GrantError(f"No read grant in environment (missing {e.args[0]})") from e
        except ValueError as e:
            raise GrantError(f"Malformed read grant in environment: {e}") from e


def generate_secret() -> bytes:
    return os.urandom(SECRET_LENGTH)


class ShareProvider:
    """Translate private file paths to shareable URIs and issue grants."""

    def __init__(
        self,
        roots: dict[str, Path],
        authority: str = DEFAULT_AUTHORITY,
        secret: bytes | None = None,
        grant_ttl: int = DEFAULT_GRANT_TTL,
    ) -> None:
        if grant_ttl <= 0:
            raise ValueError("grant_ttl must be positive")
        self.roots = {name: Path(p).expanduser().resolve() for name, p in roots.items()}
        self.authority = authority
        self.grant_ttl = grant_ttl
        self._secret = secret or generate_secret()
        self._revoked: set[str] = set()

    def uri_for_file(self, path: Path) -> str:
        """Mint a content URI for a file under one of the configured roots.

        Raises:
            ResolutionError: If the file is missing or outside every root.
        """
        path = Path(path).resolve()
        if not path.is_file():
            raise ResolutionError(f"File not found: {path}")

        # Longest root wins when roots are nested.
        for name, root in sorted(
            self.roots.items(), key=lambda item: len(item[1].parts), reverse=True
        ):
            try:
                relative = path.relative_to(root)
            except ValueError:
                continue
            return f"content://{self.authority}/{quote(name)}/{quote(relative.as_posix())}"

        raise ResolutionError(f"Path is not under a shared root: {path}")

    def path_for_uri(self, uri: str) -> Path:
        """Map a content URI minted by this provider back to its file."""
        parts = urlsplit(uri)
        if parts.scheme != "content" or parts.netloc != self.authority:
            raise ResolutionError(f"Not a URI of this provider: {uri}")
        root_name, _, relative = unquote(parts.path).lstrip("/").partition("/")
        root = self.roots.get(root_name)
        if root is None or not relative:
            raise ResolutionError(f"Unknown share root in {uri}")
        path = (root / relative).resolve()
        if not path.is_relative_to(root):
            raise ResolutionError(f"URI escapes its share root: {uri}")
        return path

    def grant(self, uri: str, consumer: str, ttl: int | None = None) -> ReadGrant:
        """Issue a read grant for ``uri`` to ``consumer``."""
        issued_at = time.time()
        expires_at = issued_at + (ttl or self.grant_ttl)
        grant_id = uuid.uuid4().hex
        token = self._sign(grant_id, uri, consumer, expires_at).hex()
        logger.debug("Granted %s read access to %s (%s)", consumer, uri, grant_id)
        return ReadGrant(
            grant_id=grant_id,
            uri=uri,
            consumer=consumer,
            issued_at=issued_at,
            expires_at=expires_at,
            token=token,
        )

    def check(self, grant: ReadGrant, uri: str, consumer: str) -> None:
        """Verify that ``grant`` lets ``consumer`` read ``uri`` right now.

        Raises:
            GrantError: If the grant does not authorize this read.
        """
        if grant.grant_id in self._revoked:
            raise GrantError(f"Grant {grant.grant_id} has been revoked")
        if grant.expired():
            raise GrantError(f"Grant {grant.grant_id} has expired")
        if grant.uri != uri or grant.consumer != consumer:
            raise GrantError(f"Grant {grant.grant_id} does not cover this read")

        h = self._mac(grant.grant_id, grant.uri, grant.consumer, grant.expires_at)
        try:
            h.verify(bytes.fromhex(grant.token))
        except (InvalidSignature, ValueError) as e:
            raise GrantError(f"Grant {grant.grant_id} has an invalid token") from e

    def revoke(self, grant_id: str) -> None:
        self._revoked.add(grant_id)

    def open_read(self, uri: str, grant: ReadGrant, consumer: str) -> bytes:
        """Read the bytes behind ``uri`` on behalf of a granted consumer."""
        self.check(grant, uri, consumer)
        path = self.path_for_uri(uri)
        try:
            return path.read_bytes()
        except OSError as e:
            raise ResolutionError(f"Cannot read {uri}: {e}") from e

    def _mac(self, grant_id: str, uri: str, consumer: str, expires_at: float) -> hmac.HMAC:
        h = hmac.HMAC(self._secret, hashes.SHA256())
        h.update("\n".join([grant_id, uri, consumer, repr(expires_at)]).encode("utf-8"))
        return h

    def _sign(self, grant_id: str, uri: str, consumer: str, expires_at: float) -> bytes:
        return self._mac(grant_id, uri, consumer, expires_at).finalize()
