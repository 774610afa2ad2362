"""
Canonical encoding helpers.

- canonical_json_bytes(obj) -> stable serialization for hashing/signing
- sha256_hex(bytes)
- encode_call / decode_call: opaque calldata for contract dispatch
- address helpers (0x-prefixed, 20 bytes, lowercase hex)
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, List, Tuple

ZERO_ADDRESS = "0x" + "00" * 20


def canonical_json_bytes(obj: Any) -> bytes:
    # stable sort + compact separators
    return json.dumps(obj, ensure_ascii=False, sort_keys=True, separators=(",", ":")).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def state_hash(state: dict) -> str:
    """Hash meaningful state (events excluded)."""
    stable = dict(state)
    stable.pop("events", None)
    stable.pop("state_hash", None)
    return sha256_hex(canonical_json_bytes(stable))


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------


def address_from_bytes(raw: bytes) -> str:
    """Last 20 bytes of sha256(raw), hex, 0x-prefixed."""
    return "0x" + hashlib.sha256(raw).digest()[-20:].hex()


def contract_address(deployer: str, deploy_nonce: int) -> str:
    return address_from_bytes(f"{normalize_address(deployer)}|{int(deploy_nonce)}".encode("utf-8"))


def normalize_address(addr: Any) -> str:
    """
    Lowercase 0x-addresses; other account ids (dev mode) pass through stripped.
    Empty/None maps to the zero address.
    """
    s = str(addr or "").strip()
    if not s:
        return ZERO_ADDRESS
    if s.lower().startswith("0x"):
        return s.lower()
    return s


def is_zero_address(addr: Any) -> bool:
    return normalize_address(addr) == ZERO_ADDRESS


# ---------------------------------------------------------------------------
# Calldata
# ---------------------------------------------------------------------------


def encode_call(fn: str, *args: Any) -> bytes:
    """Encode a function call as opaque calldata bytes."""
    return canonical_json_bytes({"fn": str(fn), "args": list(args)})


def decode_call(data: bytes) -> Tuple[str, List[Any]]:
    """
    Inverse of encode_call. Raises ValueError for anything that is not a
    well-formed call payload.
    """
    try:
        obj = json.loads(bytes(data).decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValueError(f"calldata is not a call payload: {e}") from e
    if not isinstance(obj, dict) or not isinstance(obj.get("fn"), str):
        raise ValueError("calldata missing fn")
    args = obj.get("args", [])
    if not isinstance(args, list):
        raise ValueError("calldata args must be a list")
    return obj["fn"], args


def hex_to_bytes(h: str) -> bytes:
    """Decode hex, accepting an optional 0x prefix."""
    s = str(h or "").strip()
    if s[:2].lower() == "0x":
        s = s[2:]
    return bytes.fromhex(s)


def bytes_to_hex(b: bytes) -> str:
    return "0x" + bytes(b or b"").hex()
