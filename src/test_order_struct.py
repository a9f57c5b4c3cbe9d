"""Tests for putty_order/order_struct.py against the recorded Putty scenario."""

from __future__ import annotations

from dataclasses import replace

import pytest
from eth_utils import encode_hex, to_checksum_address

from conftest import (
    PRIVATE_KEY,
    PRIVATE_KEY_ADDRESS,
    SCENARIO_DIGEST,
    SCENARIO_DOMAIN_SEPARATOR,
    SCENARIO_SIGNATURE,
    SCENARIO_STRUCT_HASH,
)
from putty_order.errors import EncodingError, InvalidKeyError
from putty_order.order_struct import (
    ORDER_SCHEMA,
    ORDER_TYPEHASH,
    ERC20Asset,
    ERC721Asset,
    Order,
    decode_order,
    encode_order,
    hash_order,
    order_struct_hash,
    sign_order,
)
from putty_order.sign_core import recover_address, verify_digest
from putty_order.typed_data import TypedDataHasher

BOB = "0xbBbBBBBbbBBBbbbBbbBbbbbBBbBbbbbBbBbbBBbB"
BABE = to_checksum_address("0x000000000000000000000000000000000000babe")


class TestSchema:

    def test_order_encode_type(self) -> None:
        assert ORDER_SCHEMA.encode_type("Order") == (
            "Order(address maker,bool isCall,bool isLong,address baseAsset,uint256 strike,"
            "uint256 premium,uint256 duration,uint256 expiration,uint256 nonce,"
            "address[] whitelist,address[] floorTokens,ERC20Asset[] erc20Assets,"
            "ERC721Asset[] erc721Assets)"
            "ERC20Asset(address token,uint256 tokenAmount)"
            "ERC721Asset(address token,uint256 tokenId)"
        )

    def test_type_hashes(self) -> None:
        assert encode_hex(ORDER_TYPEHASH) == "0x331cf33dce9314036c50f72ada91444e078be32f06bf1d891362de01ac1a8d66"
        assert encode_hex(ORDER_SCHEMA.type_hash("ERC20Asset")) == (
            "0xa55d25ac87b1c0e125b844871149c64ce5636cae2bb0ed2f2eb4990df479cd91"
        )
        assert encode_hex(ORDER_SCHEMA.type_hash("ERC721Asset")) == (
            "0x768c1d2c3157c9ca752098be2da2da3e1ddae5a69ca4394b1f83e1179407e8f0"
        )

    def test_message_follows_schema(self, order: Order) -> None:
        assert list(order.as_message()) == [f.name for f in ORDER_SCHEMA.struct("Order").fields]


class TestHashOrder:

    def test_recorded_digest(self, order: Order, domain) -> None:
        assert encode_hex(hash_order(order, domain)) == SCENARIO_DIGEST

    def test_recorded_components(self, order: Order, domain) -> None:
        assert encode_hex(order_struct_hash(order)) == SCENARIO_STRUCT_HASH
        assert encode_hex(TypedDataHasher().domain_separator(domain)) == SCENARIO_DOMAIN_SEPARATOR

    def test_deterministic(self, order: Order, domain) -> None:
        assert hash_order(order, domain) == hash_order(order, domain)
        assert hash_order(order, domain) == hash_order(replace(order), domain)

    def test_accepts_plain_message(self, order: Order, domain) -> None:
        assert TypedDataHasher().hash(domain, ORDER_SCHEMA, order.as_message()) == hash_order(order, domain)

    @pytest.mark.parametrize(
        "changes",
        [
            {"maker": BOB},
            {"is_call": True},
            {"is_long": True},
            {"base_asset": BOB},
            {"strike": 2},
            {"premium": 3},
            {"duration": 4},
            {"expiration": 5},
            {"nonce": 6},
            {"whitelist": (BOB,)},
            {"floor_tokens": (BABE,)},
            {"erc20_assets": (ERC20Asset(token=BABE, token_amount=7),)},
            {"erc20_assets": (ERC20Asset(token="0x" + "00" * 20, token_amount=8),)},
            {"erc721_assets": (ERC721Asset(token="0x" + "00" * 20, token_id=7),)},
            {"erc721_assets": ()},
        ],
    )
    def test_single_field_changes_digest(self, order: Order, domain, changes) -> None:
        assert hash_order(replace(order, **changes), domain) != hash_order(order, domain)

    def test_empty_arrays(self, order: Order, domain) -> None:
        empty = replace(order, whitelist=(), floor_tokens=(), erc20_assets=(), erc721_assets=())
        assert hash_order(empty, domain) == hash_order(replace(empty), domain)
        assert hash_order(empty, domain) != hash_order(order, domain)
        assert hash_order(empty, domain) != hash_order(replace(empty, whitelist=(BOB,)), domain)

    def test_whitelist_order_matters(self, order: Order, domain) -> None:
        a = replace(order, whitelist=(BOB, BABE))
        b = replace(order, whitelist=(BABE, BOB))
        assert hash_order(a, domain) != hash_order(b, domain)

    @pytest.mark.parametrize(
        "changes",
        [{"chain_id": 1}, {"name": "Putty2"}, {"version": "2.1"}, {"verifying_contract": BOB}],
    )
    def test_domain_isolation(self, order: Order, domain, changes) -> None:
        assert hash_order(order, replace(domain, **changes)) != hash_order(order, domain)

    def test_parallel_erc20_arrays_rejected(self, order: Order, domain) -> None:
        message = {**order.as_message(), "erc20Tokens": [BABE], "erc20Amounts": [100]}
        with pytest.raises(EncodingError, match="undeclared"):
            TypedDataHasher().hash(domain, ORDER_SCHEMA, message)

    @pytest.mark.parametrize(
        "changes",
        [
            {"strike": -1},
            {"premium": 2**256},
            {"is_call": 1},
            {"maker": "0x1234"},
            {"whitelist": ("0x" + "00" * 19,)},
        ],
    )
    def test_invalid_order(self, order: Order, domain, changes) -> None:
        with pytest.raises(EncodingError):
            hash_order(replace(order, **changes), domain)


class TestSignOrder:

    def test_recorded_signature(self, order: Order, domain) -> None:
        assert sign_order(order, domain, PRIVATE_KEY).hex() == SCENARIO_SIGNATURE

    def test_recovers_maker_key(self, order: Order, domain) -> None:
        signed = replace(order, maker=PRIVATE_KEY_ADDRESS)
        signature = sign_order(signed, domain, PRIVATE_KEY)
        digest = hash_order(signed, domain)
        assert recover_address(digest, signature) == signed.maker
        assert verify_digest(signed.maker, digest, signature)

    def test_matches_eth_keys(self, order: Order, domain) -> None:
        from eth_keys import keys

        digest = hash_order(order, domain)
        expected = keys.PrivateKey(PRIVATE_KEY).sign_msg_hash(digest)
        signature = sign_order(order, domain, PRIVATE_KEY)
        assert int.from_bytes(signature.r, "big") == expected.r
        assert int.from_bytes(signature.s, "big") == expected.s
        assert signature.v == expected.v + 27

    def test_hex_key(self, order: Order, domain) -> None:
        assert sign_order(order, domain, "0x" + "11" * 32) == sign_order(order, domain, PRIVATE_KEY)

    def test_invalid_key(self, order: Order, domain) -> None:
        with pytest.raises(InvalidKeyError):
            sign_order(order, domain, "0x" + "00" * 32)

    def test_library_calls_write_nothing(self, order: Order, domain, capfd: pytest.CaptureFixture[str]) -> None:
        hash_order(order, domain)
        sign_order(order, domain, PRIVATE_KEY)
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "typed_data.hashed" not in captured.err
        assert "sign_core.signed" not in captured.err


class TestAbiCodec:

    def test_decode_encoded_order(self, order: Order) -> None:
        encoded = encode_order(order)
        assert decode_order(encoded) == order
        assert decode_order(encode_hex(encoded)) == order

    def test_decoded_addresses_hash_identically(self, order: Order, domain) -> None:
        rich = replace(
            order,
            maker=BOB,
            whitelist=(BOB, BABE),
            erc20_assets=(ERC20Asset(token=BABE, token_amount=10**18),),
        )
        assert hash_order(decode_order(encode_order(rich)), domain) == hash_order(rich, domain)

    @pytest.mark.parametrize("data", ["0xzz", "0x1234", b"\x00" * 31])
    def test_decode_rejects_malformed(self, data) -> None:
        with pytest.raises(EncodingError):
            decode_order(data)

    def test_encode_rejects_out_of_range(self, order: Order) -> None:
        with pytest.raises(EncodingError):
            encode_order(replace(order, strike=-1))
