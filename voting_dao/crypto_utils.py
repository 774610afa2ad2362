# voting_dao/crypto_utils.py
from __future__ import annotations

"""
Account keys for the DAO node.

- Ed25519 keypairs (cryptography)
- address derivation: last 20 bytes of sha256(public key), 0x-prefixed
- sign / verify over raw message bytes
- key files: {"sk": hex, "pk": hex, "address": 0x...}
"""

import json
import os
from pathlib import Path
from typing import Dict, Tuple

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey

from .dao_runtime.codec import address_from_bytes, hex_to_bytes


def generate_keypair() -> Tuple[str, str]:
    """
    Generate a new Ed25519 keypair.

    Returns
    -------
    (sk_hex, pk_hex) : Tuple[str, str]
        Hex-encoded raw secret and public keys (32 bytes each).
    """
    sk = Ed25519PrivateKey.generate()
    sk_raw = sk.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption(),
    )
    pk_raw = sk.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )
    return sk_raw.hex(), pk_raw.hex()


def public_key_from_secret(sk_hex: str) -> str:
    sk = Ed25519PrivateKey.from_private_bytes(hex_to_bytes(sk_hex))
    return sk.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    ).hex()


def address_from_public_key(pk_hex: str) -> str:
    raw = hex_to_bytes(pk_hex)
    if len(raw) != 32:
        raise ValueError("public key must be 32 bytes (ed25519)")
    return address_from_bytes(raw)


def sign_message(sk_hex: str, message: bytes) -> str:
    if not isinstance(message, (bytes, bytearray)):
        raise TypeError("message must be bytes")
    sk = Ed25519PrivateKey.from_private_bytes(hex_to_bytes(sk_hex))
    return sk.sign(bytes(message)).hex()


def verify_signature(pk_hex: str, message: bytes, signature_hex: str) -> bool:
    """True iff signature_hex is a valid Ed25519 signature of message by pk_hex."""
    try:
        pk = Ed25519PublicKey.from_public_bytes(hex_to_bytes(pk_hex))
        pk.verify(hex_to_bytes(signature_hex), bytes(message))
        return True
    except (InvalidSignature, ValueError):
        return False


# ---------------------------------------------------------------------------
# Key files
# ---------------------------------------------------------------------------


def new_account() -> Dict[str, str]:
    sk, pk = generate_keypair()
    return {"sk": sk, "pk": pk, "address": address_from_public_key(pk)}


def write_key_file(path: str | os.PathLike, account: Dict[str, str]) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(account, indent=2), encoding="utf-8")
    try:
        os.chmod(p, 0o600)
    except OSError:
        pass
    return p


def read_key_file(path: str | os.PathLike) -> Dict[str, str]:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict) or "sk" not in data:
        raise ValueError(f"{path} is not a key file")
    pk = data.get("pk") or public_key_from_secret(data["sk"])
    return {"sk": data["sk"], "pk": pk, "address": address_from_public_key(pk)}
