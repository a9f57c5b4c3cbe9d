"""EIP-712 typed structured data: schema model, hasher and signer.

Field types form a closed set of frozen variants (``Address``, ``Bool``,
``Uint``, ``Int``, ``FixedBytes``, ``String``, ``DynamicBytes``,
``StructRef``, ``Array``). A ``TypeSchema`` groups ``StructType``
definitions under a primary type and checks at construction that every
reference resolves and that the reference graph is acyclic.

The byte-level rules follow EIP-712 exactly:

* ``encodeType(T)`` is the type string of ``T`` followed by the type
  strings of all structs ``T`` references transitively, deduplicated and
  sorted by their bytes;
* ``hashStruct(v) = keccak256(typeHash ‖ encodeData(v))``;
* the final digest is ``keccak256(0x1901 ‖ domainSeparator ‖ hashStruct(message))``.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Optional, Union

from eth_hash.auto import keccak
from eth_utils import decode_hex, encode_hex

from .errors import EncodingError, SchemaError
from .logger import get_logger
from .sign_core import (
    KeyLike,
    Signature,
    addr,
    boolean,
    eip712_digest,
    fixed_bytes,
    i256,
    parse_private_key,
    sign_digest,
    u256,
)

logger = get_logger("putty_order.typed_data")

_IDENT_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_ARRAY_RE = re.compile(r"^(?P<item>.+)\[(?P<length>\d*)\]$")
_INT_RE = re.compile(r"^(?P<unsigned>u?)int(?P<bits>\d+)$")
_BYTES_RE = re.compile(r"^bytes(?P<size>\d+)$")


# ── Field type variants ──────────────────────────────────────────────


class FieldType(ABC):
    """Base of the closed set of EIP-712 field types."""

    @property
    @abstractmethod
    def canonical(self) -> str: ...

    def __str__(self) -> str:
        return self.canonical


@dataclass(frozen=True)
class Address(FieldType):
    @property
    def canonical(self) -> str:
        return "address"


@dataclass(frozen=True)
class Bool(FieldType):
    @property
    def canonical(self) -> str:
        return "bool"


@dataclass(frozen=True)
class Uint(FieldType):
    bits: int = 256

    def __post_init__(self) -> None:
        if self.bits % 8 or not 8 <= self.bits <= 256:
            raise SchemaError(f"invalid integer width uint{self.bits}")

    @property
    def canonical(self) -> str:
        return f"uint{self.bits}"


@dataclass(frozen=True)
class Int(FieldType):
    bits: int = 256

    def __post_init__(self) -> None:
        if self.bits % 8 or not 8 <= self.bits <= 256:
            raise SchemaError(f"invalid integer width int{self.bits}")

    @property
    def canonical(self) -> str:
        return f"int{self.bits}"


@dataclass(frozen=True)
class FixedBytes(FieldType):
    size: int = 32

    def __post_init__(self) -> None:
        if not 1 <= self.size <= 32:
            raise SchemaError(f"invalid fixed bytes size bytes{self.size}")

    @property
    def canonical(self) -> str:
        return f"bytes{self.size}"


@dataclass(frozen=True)
class String(FieldType):
    @property
    def canonical(self) -> str:
        return "string"


@dataclass(frozen=True)
class DynamicBytes(FieldType):
    @property
    def canonical(self) -> str:
        return "bytes"


@dataclass(frozen=True)
class StructRef(FieldType):
    name: str

    @property
    def canonical(self) -> str:
        return self.name


@dataclass(frozen=True)
class Array(FieldType):
    item: FieldType
    length: Optional[int] = None

    @property
    def canonical(self) -> str:
        return f"{self.item.canonical}[{'' if self.length is None else self.length}]"


_ATOMIC = {"address": Address(), "bool": Bool(), "string": String(), "bytes": DynamicBytes()}


def _width(digits: str, type_str: str) -> int:
    # type strings are hashed verbatim, so only the canonical spelling is accepted
    if digits != str(int(digits)):
        raise SchemaError(f"non-canonical number in field type {type_str!r}")
    return int(digits)


def parse_type(type_str: str) -> FieldType:
    """Parse a Solidity-style type string into a field type variant.

    Anything that is not a primitive is taken as a struct name; whether it
    resolves is checked by ``TypeSchema``.
    """
    array = _ARRAY_RE.match(type_str)
    if array:
        length = _width(array.group("length"), type_str) if array.group("length") else None
        return Array(parse_type(array.group("item")), length)
    if type_str in _ATOMIC:
        return _ATOMIC[type_str]
    integer = _INT_RE.match(type_str)
    if integer:
        bits = _width(integer.group("bits"), type_str)
        return Uint(bits) if integer.group("unsigned") else Int(bits)
    fixed = _BYTES_RE.match(type_str)
    if fixed:
        return FixedBytes(_width(fixed.group("size"), type_str))
    if not _IDENT_RE.match(type_str) or type_str in ("uint", "int"):
        raise SchemaError(f"unknown field type {type_str!r}")
    return StructRef(type_str)


def _struct_ref(field_type: FieldType) -> Optional[str]:
    while isinstance(field_type, Array):
        field_type = field_type.item
    if isinstance(field_type, StructRef):
        return field_type.name
    return None


# ── Schema ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Field:
    name: str
    type: FieldType


@dataclass(frozen=True)
class StructType:
    name: str
    fields: tuple[Field, ...]

    def __post_init__(self) -> None:
        if not _IDENT_RE.match(self.name):
            raise SchemaError(f"invalid struct name {self.name!r}")
        seen = set()
        for field in self.fields:
            if not _IDENT_RE.match(field.name):
                raise SchemaError(f"{self.name}: invalid field name {field.name!r}")
            if field.name in seen:
                raise SchemaError(f"{self.name}: duplicate field {field.name!r}")
            seen.add(field.name)

    @property
    def type_string(self) -> str:
        return f"{self.name}({','.join(f'{f.type.canonical} {f.name}' for f in self.fields)})"


class TypeSchema(Mapping):
    """Immutable mapping of struct name to ``StructType`` with a primary type."""

    def __init__(self, structs: Iterable[StructType], primary_type: str) -> None:
        self._structs: dict[str, StructType] = {}
        for struct in structs:
            if struct.name in self._structs:
                raise SchemaError(f"duplicate struct definition {struct.name!r}")
            self._structs[struct.name] = struct
        if primary_type not in self._structs:
            raise SchemaError(f"primary type {primary_type!r} is not defined")
        self.primary_type = primary_type

        self._encoded_types: dict[str, str] = {}
        self._type_hashes: dict[str, bytes] = {}
        for name, struct in self._structs.items():
            deps: set[str] = set()
            self._collect(name, deps, ())
            deps.discard(name)
            dep_strings = sorted({self._structs[d].type_string for d in deps}, key=str.encode)
            encoded = struct.type_string + "".join(dep_strings)
            self._encoded_types[name] = encoded
            self._type_hashes[name] = keccak(encoded.encode("utf-8"))

    @classmethod
    def from_types(
        cls,
        types: Mapping[str, Sequence[Mapping[str, str]]],
        primary_type: Optional[str] = None,
    ) -> TypeSchema:
        """Build a schema from the ethers / eth-account JSON ``types`` object.

        An ``EIP712Domain`` entry is ignored, the domain schema is fixed. When
        ``primary_type`` is omitted it is the single struct no other struct
        references.
        """
        structs = []
        for name, fields in types.items():
            if name == "EIP712Domain":
                continue
            try:
                parsed = tuple(Field(f["name"], parse_type(f["type"])) for f in fields)
            except (KeyError, TypeError) as exc:
                raise SchemaError(f"{name}: malformed field definition") from exc
            structs.append(StructType(name, parsed))
        if primary_type is None:
            referenced = {_struct_ref(f.type) for s in structs for f in s.fields}
            roots = [s.name for s in structs if s.name not in referenced]
            if len(roots) != 1:
                raise SchemaError(f"cannot infer primary type, candidates: {roots}")
            primary_type = roots[0]
        return cls(structs, primary_type)

    def _collect(self, name: str, found: set[str], stack: tuple[str, ...]) -> None:
        if name in stack:
            raise SchemaError(f"cyclic type reference: {' -> '.join(stack + (name,))}")
        if name in found:
            return
        struct = self._structs.get(name)
        if struct is None:
            origin = f" (referenced by {stack[-1]})" if stack else ""
            raise SchemaError(f"unresolved type {name!r}{origin}")
        found.add(name)
        for field in struct.fields:
            ref = _struct_ref(field.type)
            if ref is not None:
                self._collect(ref, found, stack + (name,))

    def __getitem__(self, name: str) -> StructType:
        return self._structs[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._structs)

    def __len__(self) -> int:
        return len(self._structs)

    def struct(self, name: str) -> StructType:
        try:
            return self._structs[name]
        except KeyError:
            raise SchemaError(f"unknown struct type {name!r}") from None

    def encode_type(self, name: str) -> str:
        self.struct(name)
        return self._encoded_types[name]

    def type_hash(self, name: str) -> bytes:
        self.struct(name)
        return self._type_hashes[name]

    def as_types(self) -> dict[str, list[dict[str, str]]]:
        return {
            name: [{"name": f.name, "type": f.type.canonical} for f in struct.fields]
            for name, struct in self._structs.items()
        }


EIP712_DOMAIN_SCHEMA = TypeSchema(
    [
        StructType(
            "EIP712Domain",
            (
                Field("name", String()),
                Field("version", String()),
                Field("chainId", Uint(256)),
                Field("verifyingContract", Address()),
            ),
        )
    ],
    primary_type="EIP712Domain",
)


@dataclass(frozen=True)
class Domain:
    """EIP-712 signing domain; bound into every digest."""

    name: str
    version: str
    chain_id: int
    verifying_contract: str

    def as_message(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "chainId": self.chain_id,
            "verifyingContract": self.verifying_contract,
        }


# ── Hasher ───────────────────────────────────────────────────────────


def _as_message(value: Any) -> Mapping[str, Any]:
    if hasattr(value, "as_message"):
        value = value.as_message()
    if not isinstance(value, Mapping):
        raise EncodingError(f"struct value must be a mapping, got {type(value).__name__}")
    return value


class TypedDataHasher:
    """Computes EIP-712 type hashes, struct hashes and final digests."""

    def encode_type(self, schema: TypeSchema, name: str) -> str:
        return schema.encode_type(name)

    def type_hash(self, schema: TypeSchema, name: str) -> bytes:
        return schema.type_hash(name)

    def encode_data(self, schema: TypeSchema, name: str, value: Any) -> bytes:
        struct = schema.struct(name)
        message = _as_message(value)

        declared = {f.name for f in struct.fields}
        missing = [f.name for f in struct.fields if f.name not in message]
        if missing:
            raise EncodingError(f"{name}: missing fields {missing}")
        extra = sorted(k for k in message if k not in declared)
        if extra:
            raise EncodingError(f"{name}: undeclared fields {extra}")

        parts = [schema.type_hash(name)]
        for field in struct.fields:
            try:
                parts.append(self._encode_field(schema, field.type, message[field.name]))
            except EncodingError as exc:
                raise EncodingError(f"{name}.{field.name}: {exc}") from exc
        return b"".join(parts)

    def struct_hash(self, schema: TypeSchema, name: str, value: Any) -> bytes:
        return keccak(self.encode_data(schema, name, value))

    def domain_separator(self, domain: Domain) -> bytes:
        return self.struct_hash(EIP712_DOMAIN_SCHEMA, "EIP712Domain", domain.as_message())

    def hash(self, domain: Domain, schema: TypeSchema, value: Any) -> bytes:
        digest = eip712_digest(
            self.domain_separator(domain),
            self.struct_hash(schema, schema.primary_type, value),
        )
        logger.debug(
            "typed_data.hashed",
            primary_type=schema.primary_type,
            chain_id=domain.chain_id,
            digest=encode_hex(digest),
        )
        return digest

    def _encode_field(self, schema: TypeSchema, field_type: FieldType, value: Any) -> bytes:
        if isinstance(field_type, StructRef):
            return self.struct_hash(schema, field_type.name, value)
        if isinstance(field_type, Array):
            if isinstance(value, (str, bytes, bytearray)) or not isinstance(value, Sequence):
                raise EncodingError(f"{field_type} expects a list, got {type(value).__name__}")
            if field_type.length is not None and len(value) != field_type.length:
                raise EncodingError(f"{field_type} expects {field_type.length} items, got {len(value)}")
            return keccak(b"".join(self._encode_field(schema, field_type.item, v) for v in value))
        if isinstance(field_type, Address):
            return addr(value)
        if isinstance(field_type, Bool):
            return boolean(value)
        if isinstance(field_type, Uint):
            return u256(value, field_type.bits)
        if isinstance(field_type, Int):
            return i256(value, field_type.bits)
        if isinstance(field_type, FixedBytes):
            return fixed_bytes(value, field_type.size)
        if isinstance(field_type, String):
            if not isinstance(value, str):
                raise EncodingError(f"string expects str, got {type(value).__name__}")
            return keccak(value.encode("utf-8"))
        if isinstance(field_type, DynamicBytes):
            return keccak(_raw_bytes(value))
        raise SchemaError(f"unsupported field type {field_type!r}")


def _raw_bytes(value: Union[str, bytes]) -> bytes:
    if isinstance(value, str):
        try:
            return decode_hex(value)
        except ValueError as exc:
            raise EncodingError(f"bytes expects hex text: {exc}") from exc
    if not isinstance(value, (bytes, bytearray)):
        raise EncodingError(f"bytes expects bytes, got {type(value).__name__}")
    return bytes(value)


# ── Signer ───────────────────────────────────────────────────────────


class TypedDataSigner:
    """Signs the EIP-712 digest of a typed value with a raw secp256k1 key."""

    def __init__(self, hasher: Optional[TypedDataHasher] = None) -> None:
        self._hasher = hasher or TypedDataHasher()

    def sign(self, domain: Domain, schema: TypeSchema, value: Any, private_key: KeyLike) -> Signature:
        key = parse_private_key(private_key)
        digest = self._hasher.hash(domain, schema, value)
        return sign_digest(key, digest)
