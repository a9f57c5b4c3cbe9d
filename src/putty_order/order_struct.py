from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError as AbiEncodingError
from eth_utils import decode_hex

from .errors import EncodingError
from .sign_core import KeyLike, Signature
from .typed_data import (
    Address,
    Array,
    Bool,
    Domain,
    Field,
    StructRef,
    StructType,
    TypeSchema,
    TypedDataHasher,
    TypedDataSigner,
    Uint,
)

# EIP-712 types for a Putty Order
# Order(address maker,bool isCall,bool isLong,address baseAsset,uint256 strike,uint256 premium,uint256 duration,uint256 expiration,uint256 nonce,address[] whitelist,address[] floorTokens,ERC20Asset[] erc20Assets,ERC721Asset[] erc721Assets)ERC20Asset(address token,uint256 tokenAmount)ERC721Asset(address token,uint256 tokenId)
# Hash: 0x331cf33dce9314036c50f72ada91444e078be32f06bf1d891362de01ac1a8d66
ERC20_ASSET_TYPE = StructType(
    "ERC20Asset",
    (
        Field("token", Address()),
        Field("tokenAmount", Uint(256)),
    ),
)

ERC721_ASSET_TYPE = StructType(
    "ERC721Asset",
    (
        Field("token", Address()),
        Field("tokenId", Uint(256)),
    ),
)

ORDER_TYPE = StructType(
    "Order",
    (
        Field("maker", Address()),
        Field("isCall", Bool()),
        Field("isLong", Bool()),
        Field("baseAsset", Address()),
        Field("strike", Uint(256)),
        Field("premium", Uint(256)),
        Field("duration", Uint(256)),
        Field("expiration", Uint(256)),
        Field("nonce", Uint(256)),
        Field("whitelist", Array(Address())),
        Field("floorTokens", Array(Address())),
        Field("erc20Assets", Array(StructRef("ERC20Asset"))),
        Field("erc721Assets", Array(StructRef("ERC721Asset"))),
    ),
)

ORDER_SCHEMA = TypeSchema([ORDER_TYPE, ERC20_ASSET_TYPE, ERC721_ASSET_TYPE], primary_type="Order")
ORDER_TYPEHASH = ORDER_SCHEMA.type_hash("Order")

# ABI tuple layout used by callers that pass an order as one encoded blob
ORDER_ABI_TYPE = (
    "(address,bool,bool,address,uint256,uint256,uint256,uint256,uint256,"
    "address[],address[],(address,uint256)[],(address,uint256)[])"
)


@dataclass(frozen=True)
class ERC20Asset:
    token: str
    token_amount: int

    def as_message(self) -> dict[str, Any]:
        return {"token": self.token, "tokenAmount": self.token_amount}


@dataclass(frozen=True)
class ERC721Asset:
    token: str
    token_id: int

    def as_message(self) -> dict[str, Any]:
        return {"token": self.token, "tokenId": self.token_id}


@dataclass(frozen=True)
class Order:
    """A Putty option order as signed by its maker."""

    maker: str
    is_call: bool
    is_long: bool
    base_asset: str
    strike: int
    premium: int
    duration: int
    expiration: int
    nonce: int
    whitelist: tuple[str, ...] = ()
    floor_tokens: tuple[str, ...] = ()
    erc20_assets: tuple[ERC20Asset, ...] = ()
    erc721_assets: tuple[ERC721Asset, ...] = ()

    def as_message(self) -> dict[str, Any]:
        """EIP-712 message keyed by the schema's field names."""
        return {
            "maker": self.maker,
            "isCall": self.is_call,
            "isLong": self.is_long,
            "baseAsset": self.base_asset,
            "strike": self.strike,
            "premium": self.premium,
            "duration": self.duration,
            "expiration": self.expiration,
            "nonce": self.nonce,
            "whitelist": list(self.whitelist),
            "floorTokens": list(self.floor_tokens),
            "erc20Assets": [a.as_message() for a in self.erc20_assets],
            "erc721Assets": [a.as_message() for a in self.erc721_assets],
        }

    def as_abi_tuple(self) -> tuple:
        return (
            self.maker,
            self.is_call,
            self.is_long,
            self.base_asset,
            self.strike,
            self.premium,
            self.duration,
            self.expiration,
            self.nonce,
            list(self.whitelist),
            list(self.floor_tokens),
            [(a.token, a.token_amount) for a in self.erc20_assets],
            [(a.token, a.token_id) for a in self.erc721_assets],
        )

    @classmethod
    def from_abi_tuple(cls, values: tuple) -> Order:
        (
            maker, is_call, is_long, base_asset, strike, premium, duration,
            expiration, nonce, whitelist, floor_tokens, erc20_assets, erc721_assets,
        ) = values
        return cls(
            maker=maker,
            is_call=is_call,
            is_long=is_long,
            base_asset=base_asset,
            strike=strike,
            premium=premium,
            duration=duration,
            expiration=expiration,
            nonce=nonce,
            whitelist=tuple(whitelist),
            floor_tokens=tuple(floor_tokens),
            erc20_assets=tuple(ERC20Asset(token, amount) for token, amount in erc20_assets),
            erc721_assets=tuple(ERC721Asset(token, token_id) for token, token_id in erc721_assets),
        )


def decode_order(data: Union[str, bytes]) -> Order:
    """Decode an ABI-encoded order tuple given as bytes or hex text."""
    if isinstance(data, str):
        try:
            data = decode_hex(data)
        except ValueError as exc:
            raise EncodingError(f"encoded order is not valid hex: {exc}") from exc
    try:
        (values,) = decode([ORDER_ABI_TYPE], data)
    except DecodingError as exc:
        raise EncodingError(f"cannot decode order: {exc}") from exc
    return Order.from_abi_tuple(values)


def encode_order(order: Order) -> bytes:
    try:
        return encode([ORDER_ABI_TYPE], [order.as_abi_tuple()])
    except AbiEncodingError as exc:
        raise EncodingError(f"cannot encode order: {exc}") from exc


_hasher = TypedDataHasher()
_signer = TypedDataSigner(_hasher)


def order_struct_hash(order: Order) -> bytes:
    return _hasher.struct_hash(ORDER_SCHEMA, "Order", order)


def hash_order(order: Order, domain: Domain) -> bytes:
    """Full EIP-712 digest of ``order`` under ``domain``."""
    return _hasher.hash(domain, ORDER_SCHEMA, order)


def sign_order(order: Order, domain: Domain, private_key: KeyLike) -> Signature:
    return _signer.sign(domain, ORDER_SCHEMA, order, private_key)
