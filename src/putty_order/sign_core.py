from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from coincurve import PrivateKey, PublicKey
from eth_hash.auto import keccak
from eth_utils import (
    decode_hex,
    encode_hex,
    is_address,
    is_checksum_address,
    is_checksum_formatted_address,
    to_canonical_address,
    to_checksum_address,
)

from .errors import EncodingError, InvalidKeyError
from .logger import get_logger

logger = get_logger("putty_order.sign_core")

SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

AddressLike = Union[str, bytes]
KeyLike = Union[str, bytes]

# ---------- fixed-width helpers ----------

def u256(x: int, bits: int = 256) -> bytes:
    if isinstance(x, bool) or not isinstance(x, int):
        raise EncodingError(f"uint{bits} expects an int, got {type(x).__name__}")
    if x < 0 or x >= 1 << bits:
        raise EncodingError(f"{x} out of range for uint{bits}")
    return x.to_bytes(32, "big")

def i256(x: int, bits: int = 256) -> bytes:
    if isinstance(x, bool) or not isinstance(x, int):
        raise EncodingError(f"int{bits} expects an int, got {type(x).__name__}")
    bound = 1 << (bits - 1)
    if x < -bound or x >= bound:
        raise EncodingError(f"{x} out of range for int{bits}")
    return x.to_bytes(32, "big", signed=True)

def boolean(x: bool) -> bytes:
    if not isinstance(x, bool):
        raise EncodingError(f"bool expects True or False, got {x!r}")
    return u256(int(x))

def canonical_address(a: AddressLike) -> bytes:
    """Return the 20 raw bytes of an address given as hex text or bytes."""
    if not isinstance(a, (str, bytes, bytearray)):
        raise EncodingError(f"address expects hex text or 20 bytes, got {type(a).__name__}")
    if isinstance(a, str):
        if not is_address(a):
            raise EncodingError(f"invalid address {a!r}")
        if is_checksum_formatted_address(a) and not is_checksum_address(a):
            raise EncodingError(f"bad address checksum {a!r}")
    try:
        return to_canonical_address(bytes(a) if isinstance(a, bytearray) else a)
    except ValueError as exc:
        raise EncodingError(f"invalid address {a!r}: {exc}") from exc

def addr(a: AddressLike) -> bytes:
    # 20-byte address left-padded to a 32-byte word
    return b"\x00" * 12 + canonical_address(a)

def fixed_bytes(x: Union[str, bytes], size: int) -> bytes:
    raw = x
    if isinstance(x, str):
        try:
            raw = decode_hex(x)
        except ValueError as exc:
            raise EncodingError(f"bytes{size} expects hex text: {exc}") from exc
    if not isinstance(raw, (bytes, bytearray)):
        raise EncodingError(f"bytes{size} expects bytes, got {type(x).__name__}")
    if len(raw) != size:
        raise EncodingError(f"bytes{size} expects {size} bytes, got {len(raw)}")
    return bytes(raw).ljust(32, b"\x00")

def b32(x: bytes) -> bytes:
    if not isinstance(x, (bytes, bytearray)) or len(x) != 32:
        raise EncodingError("expected a 32-byte value")
    return bytes(x)

# ---------- EIP-712 core ----------

EIP191_PREFIX = b"\x19\x01"

def eip712_digest(domain_separator: bytes, struct_hash: bytes) -> bytes:
    return keccak(EIP191_PREFIX + b32(domain_separator) + b32(struct_hash))

# ---------- deterministic secp256k1 ----------

@dataclass(frozen=True)
class Signature:
    """Recoverable ECDSA signature, ``v`` in the 27/28 convention."""

    r: bytes
    s: bytes
    v: int

    def __post_init__(self) -> None:
        if len(self.r) != 32 or len(self.s) != 32:
            raise EncodingError("signature r and s must be 32 bytes each")
        if self.v not in (27, 28):
            raise EncodingError(f"signature v must be 27 or 28, got {self.v}")

    @classmethod
    def from_bytes(cls, sig65: Union[str, bytes]) -> Signature:
        if isinstance(sig65, str):
            try:
                sig65 = decode_hex(sig65)
            except ValueError as exc:
                raise EncodingError(f"signature is not hex: {exc}") from exc
        if len(sig65) != 65:
            raise EncodingError(f"signature must be 65 bytes, got {len(sig65)}")
        v = sig65[64]
        if v in (0, 1):
            v += 27
        return cls(r=bytes(sig65[:32]), s=bytes(sig65[32:64]), v=v)

    @property
    def recovery_id(self) -> int:
        return self.v - 27

    def to_bytes(self) -> bytes:
        return self.r + self.s + bytes([self.v])

    def hex(self) -> str:
        return encode_hex(self.to_bytes())


def parse_private_key(private_key: KeyLike) -> bytes:
    """Validate a raw secp256k1 key given as 32 bytes or hex text."""
    raw = private_key
    if isinstance(private_key, str):
        try:
            raw = decode_hex(private_key)
        except ValueError as exc:
            raise InvalidKeyError("private key is not valid hex") from exc
    if not isinstance(raw, (bytes, bytearray)):
        raise InvalidKeyError(f"private key must be bytes or hex text, got {type(private_key).__name__}")
    if len(raw) != 32:
        raise InvalidKeyError(f"private key must be 32 bytes, got {len(raw)}")
    secret = int.from_bytes(raw, "big")
    if not 0 < secret < SECP256K1_N:
        raise InvalidKeyError("private key must be in [1, n-1] for secp256k1")
    return bytes(raw)


def public_key_to_address(public_key: PublicKey) -> str:
    # keccak of the 64-byte uncompressed point, last 20 bytes
    return to_checksum_address(keccak(public_key.format(compressed=False)[1:])[-20:])


def private_key_to_address(private_key: KeyLike) -> str:
    return public_key_to_address(PrivateKey(parse_private_key(private_key)).public_key)


def sign_digest(private_key: KeyLike, digest_32: bytes) -> Signature:
    pk = PrivateKey(parse_private_key(private_key))
    digest_32 = b32(digest_32)

    # libsecp256k1 uses RFC 6979 nonces and low-s normalisation
    sig65 = pk.sign_recoverable(digest_32, hasher=None)
    signature = Signature(r=sig65[:32], s=sig65[32:64], v=27 + sig65[64])

    logger.debug(
        "sign_core.signed",
        digest=encode_hex(digest_32),
        signer=public_key_to_address(pk.public_key),
    )
    return signature


def recover_address(digest_32: bytes, signature: Union[Signature, bytes, str]) -> str:
    if not isinstance(signature, Signature):
        signature = Signature.from_bytes(signature)
    sig65 = signature.r + signature.s + bytes([signature.recovery_id])
    try:
        public_key = PublicKey.from_signature_and_message(sig65, b32(digest_32), hasher=None)
    except ValueError as exc:
        raise EncodingError(f"cannot recover a public key: {exc}") from exc
    return public_key_to_address(public_key)


def verify_digest(address: AddressLike, digest_32: bytes, signature: Union[Signature, bytes, str]) -> bool:
    """True when ``signature`` over ``digest_32`` was made by ``address``."""
    return canonical_address(recover_address(digest_32, signature)) == canonical_address(address)
