"""Error kinds raised by the hashing and signing routines."""


class TypedDataError(Exception):
    """Base class for every failure raised by ``putty_order``."""

    kind = "typed_data_error"


class SchemaError(TypedDataError):
    """Unknown field type, unresolvable or cyclic type reference."""

    kind = "schema_error"


class EncodingError(TypedDataError):
    """A value does not conform to its declared field type."""

    kind = "encoding_error"


class InvalidKeyError(TypedDataError):
    """Malformed secp256k1 private key."""

    kind = "invalid_key"
