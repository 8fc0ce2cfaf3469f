"""At-rest obfuscation for the saved personal access token.

The key is derived from facts about the current machine and user (home
directory, platform, architecture, username). Platform and architecture use
Node.js naming (``linux``, ``darwin``, ``win32``; ``x64``, ``arm64``) so the
key matches config files written by the JavaScript release of the tool.

Anyone with access to the same account can rebuild the key, so this only
keeps the token from being readable at a glance in the config file. It is
not a secret store.

Encrypted values look like ``<iv hex>:<ciphertext hex>`` (AES-256-CBC).
Values without a ``:`` are treated as plain text tokens written by older
versions.
"""

from __future__ import annotations

import hashlib
import logging
import os
import platform
import sys
from pathlib import Path

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

logger = logging.getLogger(__name__)

IV_LENGTH = 16
BLOCK_SIZE_BITS = 128
KEY_SEPARATOR = "|"

# platform.machine() (lowercased) to Node.js process.arch
NODE_ARCH = {
    "x86_64": "x64",
    "amd64": "x64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "ia32",
    "i686": "ia32",
    "x86": "ia32",
    "armv6l": "arm",
    "armv7l": "arm",
    "ppc64le": "ppc64",
}


def node_arch(machine: str | None = None) -> str:
    machine = (machine if machine is not None else platform.machine()).lower()
    return NODE_ARCH.get(machine, machine)


def _username() -> str:
    return os.getenv("USER") or os.getenv("USERNAME") or "default"


def derive_key() -> bytes:
    """Build the 32-byte obfuscation key from the machine/user fingerprint."""
    machine_info = KEY_SEPARATOR.join(
        [str(Path.home()), sys.platform, node_arch(), _username()]
    )
    return hashlib.sha256(machine_info.encode("utf-8")).digest()


def _cipher(iv: bytes) -> Cipher:
    return Cipher(algorithms.AES(derive_key()), modes.CBC(iv))


def encrypt_token(token: str) -> str:
    """Encrypt a token. Returns the input unchanged if encryption fails."""
    try:
        iv = os.urandom(IV_LENGTH)
        padder = padding.PKCS7(BLOCK_SIZE_BITS).padder()
        padded = padder.update(token.encode("utf-8")) + padder.finalize()
        encryptor = _cipher(iv).encryptor()
        encrypted = encryptor.update(padded) + encryptor.finalize()
        return f"{iv.hex()}:{encrypted.hex()}"
    except Exception as e:
        logger.warning(f"Token encryption failed, storing in plain text: {e}")
        return token


def decrypt_token(value: str) -> str:
    """Decrypt a token. Plain text and undecryptable input come back as-is."""
    if ":" not in value:
        return value

    iv_hex, _, encrypted_hex = value.partition(":")
    if not iv_hex or not encrypted_hex:
        return value

    try:
        decryptor = _cipher(bytes.fromhex(iv_hex)).decryptor()
        padded = decryptor.update(bytes.fromhex(encrypted_hex)) + decryptor.finalize()
        unpadder = padding.PKCS7(BLOCK_SIZE_BITS).unpadder()
        return (unpadder.update(padded) + unpadder.finalize()).decode("utf-8")
    except Exception as e:
        logger.warning(f"Token decryption failed, using as plain text: {e}")
        return value


def is_token_encrypted(token: str) -> bool:
    """Heuristic: encrypted tokens carry a separator and are longer than 50 chars."""
    return ":" in token and len(token) > 50


def obfuscate_token(token: str) -> str:
    """Mask a token for display, keeping the first and last four characters."""
    if not token or len(token) < 8:
        return "***"
    middle = "*" * min(len(token) - 8, 20)
    return f"{token[:4]}{middle}{token[-4:]}"
