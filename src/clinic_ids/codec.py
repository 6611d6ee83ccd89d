"""The identifier codec — keeps raw primary keys out of URLs.

Route handlers hold a plaintext record id (a 24-hex-character object id
in practice) and call ``encode`` before putting it in a link or a JSON
field. When the token comes back in a path segment, ``decode`` recovers
the plaintext id or returns None, which the route turns into a 400.

Token format, before URL-safe substitution::

    <32 hex chars of IV>:<base64 of AES-256-CBC ciphertext>

``+`` becomes ``-``, ``/`` becomes ``_`` and trailing ``=`` is stripped.
A fresh random IV is drawn for every call, so the same id never encodes
to the same token twice.
"""

from __future__ import annotations

import base64
import hashlib
import logging
import os
import re
from urllib.parse import unquote

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

logger = logging.getLogger("clinic_ids.codec")

IV_SIZE = 16
LEGACY_ID_PATTERN = re.compile(r"[0-9a-fA-F]{24}")
IV_HEX_PATTERN = re.compile(r"[0-9a-fA-F]{32}")


class EncodeError(Exception):
    """Raised by a strict codec when an identifier cannot be encrypted."""


def derive_key(secret: str) -> bytes:
    """Normalize a secret of any length into a 32-byte AES-256 key."""
    return hashlib.sha256(str(secret).encode("utf-8")).digest()


def looks_like_legacy_id(value: str) -> bool:
    """True for ids issued before obfuscation: exactly 24 hex digits."""
    return bool(LEGACY_ID_PATTERN.fullmatch(value))


def _to_url_safe(token: str) -> str:
    return token.replace("+", "-").replace("/", "_").rstrip("=")


def _from_url_safe(token: str) -> str:
    return token.replace("-", "+").replace("_", "/")


class IdentifierCodec:
    """Reversible obfuscation of record identifiers.

    Holds only the derived key, so one instance can be shared by every
    request handler. ``accept_legacy`` keeps old plain-id links working;
    ``strict`` makes ``encode`` raise instead of returning the plaintext
    when encryption fails.
    """

    def __init__(
        self,
        secret: str,
        *,
        accept_legacy: bool = True,
        strict: bool = False,
    ) -> None:
        self._key = derive_key(secret)
        self.accept_legacy = accept_legacy
        self.strict = strict

    def _cipher(self, iv: bytes) -> Cipher:
        return Cipher(algorithms.AES(self._key), modes.CBC(iv))

    def encode(self, plaintext: str) -> str:
        """Map a plaintext record id to a URL-safe token.

        Empty input returns an empty string. If encryption fails the
        plaintext comes back unchanged, unless the codec is strict.
        """
        if not plaintext:
            return ""
        try:
            iv = os.urandom(IV_SIZE)
            padder = padding.PKCS7(algorithms.AES.block_size).padder()
            padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
            encryptor = self._cipher(iv).encryptor()
            ciphertext = encryptor.update(padded) + encryptor.finalize()
        except Exception as exc:
            logger.exception("Failed to encode identifier")
            if self.strict:
                raise EncodeError("identifier could not be encoded") from exc
            return plaintext
        combined = iv.hex() + ":" + base64.b64encode(ciphertext).decode("ascii")
        return _to_url_safe(combined)

    def decode(self, token: str) -> str | None:
        """Map a token (or a legacy plain id) back to the plaintext id.

        Returns None for empty, malformed, forged or stale input. Never
        raises.
        """
        if not token:
            return None
        try:
            clean = unquote(token)
        except Exception:
            logger.warning("Identifier rejected: %r", token)
            return None

        if ":" in clean:
            return self._decrypt(clean)

        if self.accept_legacy and looks_like_legacy_id(clean):
            return clean

        logger.warning("Identifier rejected: %r", token)
        return None

    def _decrypt(self, clean: str) -> str | None:
        parts = _from_url_safe(clean).split(":")
        if len(parts) != 2:
            logger.warning("Invalid token format: %r", clean)
            return None
        iv_hex, ciphertext_b64 = parts
        if not IV_HEX_PATTERN.fullmatch(iv_hex):
            logger.warning("Invalid token IV: %r", clean)
            return None
        ciphertext_b64 += "=" * (-len(ciphertext_b64) % 4)

        try:
            iv = bytes.fromhex(iv_hex)
            ciphertext = base64.b64decode(ciphertext_b64, validate=True)
            decryptor = self._cipher(iv).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            raw = unpadder.update(padded) + unpadder.finalize()
            return raw.decode("utf-8")
        except Exception as exc:
            logger.warning("Token decryption failed for %r: %s", clean, exc)
            return None
