"""Shared fixtures: the recorded Putty scenario and a fixed test key."""

from __future__ import annotations

import pytest

from putty_order.order_struct import ERC20Asset, ERC721Asset, Order
from putty_order.typed_data import Domain

ZERO_ADDRESS = "0x" + "00" * 20

# fixed private key (DO NOT USE IN PRODUCTION)
PRIVATE_KEY = bytes.fromhex("1" * 64)
PRIVATE_KEY_ADDRESS = "0x19E7E376E7C213B7E7e7e46cc70A5dD086DAff2A"

# recorded with an independent EIP-712 implementation
SCENARIO_DIGEST = "0xa37e14c385f0e7089f9f1fb2fda1c2a573ff22b57068c92b284ae39223fe8b98"
SCENARIO_STRUCT_HASH = "0x54773521573f8f52be026cb49f2811ec2d4d9cc3e750e65c6a0d7fb47396af2a"
SCENARIO_DOMAIN_SEPARATOR = "0x548b84e7d1468a21721fa5f2cdb312291991cfdc9b31bc87308f1c256ccada47"
SCENARIO_SIGNATURE = (
    "0x047a4594c931fcd413d8bc7f35f21b8cae65d9b39daf744b254cb30a301829ca"
    "42d3c2d2d699e1cabbe8cff61847457794252760f3270d13af27d50202574546"
    "1b"
)


@pytest.fixture
def domain() -> Domain:
    return Domain(
        name="Putty",
        version="2.0",
        chain_id=31337,
        verifying_contract="0xce71065d4017f316ec606fe4422e11eb2c47c246",
    )


@pytest.fixture
def order() -> Order:
    return Order(
        maker=ZERO_ADDRESS,
        is_call=False,
        is_long=False,
        base_asset=ZERO_ADDRESS,
        strike=1,
        premium=2,
        duration=3,
        expiration=4,
        nonce=5,
        whitelist=(),
        floor_tokens=(),
        erc20_assets=(ERC20Asset(token=ZERO_ADDRESS, token_amount=7),),
        erc721_assets=(ERC721Asset(token=ZERO_ADDRESS, token_id=6),),
    )
