"""Putty order signing — EIP-712 typed-data hashing and secp256k1 signatures.

- TypedDataHasher: domain + schema + value -> 32-byte digest
- TypedDataSigner: the same plus a raw private key -> recoverable signature
- order_struct: the Order / ERC20Asset / ERC721Asset schema and helpers
"""

from .errors import EncodingError, InvalidKeyError, SchemaError, TypedDataError
from .order_struct import (
    ORDER_SCHEMA,
    ERC20Asset,
    ERC721Asset,
    Order,
    decode_order,
    encode_order,
    hash_order,
    order_struct_hash,
    sign_order,
)
from .sign_core import Signature, recover_address, sign_digest, verify_digest
from .typed_data import Domain, TypedDataHasher, TypedDataSigner, TypeSchema

__all__ = [
    "Domain",
    "ERC20Asset",
    "ERC721Asset",
    "EncodingError",
    "InvalidKeyError",
    "ORDER_SCHEMA",
    "Order",
    "SchemaError",
    "Signature",
    "TypeSchema",
    "TypedDataError",
    "TypedDataHasher",
    "TypedDataSigner",
    "decode_order",
    "encode_order",
    "hash_order",
    "order_struct_hash",
    "recover_address",
    "sign_digest",
    "sign_order",
    "verify_digest",
]
