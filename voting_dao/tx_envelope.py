"""
Call envelopes: how a client asks the node to act on its behalf.

Verifies:
- sender matches the Ed25519 public key (address derivation)
- signature verifies over the canonical signing preimage
- nonce equals the sender's next expected nonce (replay protection)

Note:
In dev mode (policy.require_signature=False) unsigned envelopes are
accepted and `sender` is taken as given. A signature that IS attached is
still checked.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional

from .crypto_utils import address_from_public_key, sign_message, verify_signature
from .dao_runtime.codec import canonical_json_bytes, normalize_address
from .dao_runtime.errors import BadNonce, SignatureError, require

SIGNING_DOMAIN = "voting-dao/envelope/v1"


@dataclass(frozen=True)
class EnvelopePolicy:
    require_signature: bool = False
    pubkey_len: int = 32  # Ed25519 public key length
    sig_len: int = 64     # Ed25519 signature length


@dataclass
class CallEnvelope:
    sender: str
    action: str
    params: Dict[str, Any] = field(default_factory=dict)
    nonce: int = 0
    public_key: str = ""
    signature: str = ""

    def signing_preimage(self, chain_id: str) -> bytes:
        return canonical_json_bytes(
            {
                "domain": SIGNING_DOMAIN,
                "chain_id": str(chain_id),
                "sender": normalize_address(self.sender),
                "action": self.action,
                "params": self.params,
                "nonce": int(self.nonce),
            }
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class NonceStore:
    """Nonces backed by a dict: state["nonces"][sender] -> expected nonce."""

    def __init__(self, backing: dict):
        self._d = backing if isinstance(backing, dict) else {}

    def expected(self, sender: str) -> int:
        return int(self._d.get(normalize_address(sender), 0))

    def require(self, sender: str, nonce: int) -> bool:
        return int(nonce) == self.expected(sender)

    def commit(self, sender: str, next_expected: int) -> None:
        self._d[normalize_address(sender)] = int(next_expected)


def sign_envelope(env: CallEnvelope, sk_hex: str, pk_hex: str, chain_id: str) -> CallEnvelope:
    env.public_key = pk_hex
    env.sender = address_from_public_key(pk_hex)
    env.signature = sign_message(sk_hex, env.signing_preimage(chain_id))
    return env


def verify_envelope(
    env: CallEnvelope,
    chain_id: str,
    *,
    policy: Optional[EnvelopePolicy] = None,
    nonce_store: Optional[NonceStore] = None,
) -> str:
    """
    Check an envelope and return the authenticated sender address.
    Raises SignatureError / BadNonce.
    """
    pol = policy or EnvelopePolicy()
    sender = normalize_address(env.sender)
    require(bool(str(env.sender or "").strip()), SignatureError, "sender missing")
    require(bool(str(env.action or "").strip()), SignatureError, "action missing")

    if not env.signature:
        require(not pol.require_signature, SignatureError, "signature required")
        return sender

    pk = str(env.public_key or "")
    require(len(pk.removeprefix("0x")) == pol.pubkey_len * 2, SignatureError, "public key must be 32 bytes (ed25519)")
    require(len(str(env.signature).removeprefix("0x")) == pol.sig_len * 2, SignatureError, "signature must be 64 bytes (ed25519)")
    try:
        derived = address_from_public_key(pk)
    except ValueError as e:
        raise SignatureError(f"bad public key: {e}") from e
    require(derived == sender, SignatureError, "sender does not match public key")
    require(verify_signature(pk, env.signing_preimage(chain_id), env.signature), SignatureError)

    if nonce_store is not None:
        require(nonce_store.require(sender, env.nonce), BadNonce, f"expected nonce {nonce_store.expected(sender)}")
    return sender
