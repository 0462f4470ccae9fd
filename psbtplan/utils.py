# Copyright (C) 2018-2025 The python-bitcoin-utils developers
#
# This file is part of python-bitcoin-utils
#
# It is subject to the license terms in the LICENSE file found in the top-level
# directory of this distribution.
#
# No part of python-bitcoin-utils, including this file, may be copied, modified,
# propagated, or distributed except according to the terms contained in the
# LICENSE file.

from __future__ import annotations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from psbtplan.script import Script
    from typing import Tuple

import hashlib
import struct

from ecdsa import SECP256k1, VerifyingKey  # type: ignore

from psbtplan.constants import LEAF_VERSION_TAPSCRIPT
from psbtplan.ripemd160 import ripemd160


class Secp256k1Params:
    # ECDSA curve using secp256k1 is defined by: y**2 = x**3 + 7
    # This is done modulo p which (secp256k1) is:
    # p is the finite field prime number and is equal to:
    # 2^256 - 2^32 - 2^9 - 2^8 - 2^7 - 2^6 - 2^4 - 1
    _p = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEFFFFFC2F
    # prime number of points in the group (the order)
    _order = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


def encode_varint(i: int) -> bytes:
    """
    Encode a potentially very large integer into varint bytes. The length should be
    specified in little-endian.

    https://bitcoin.org/en/developer-reference#compactsize-unsigned-integers
    """
    if i < 0xFD:
        return bytes([i])
    elif i < 0x10000:
        return b"\xfd" + struct.pack("<H", i)
    elif i < 0x100000000:
        return b"\xfe" + struct.pack("<I", i)
    elif i < 0x10000000000000000:
        return b"\xff" + struct.pack("<Q", i)
    else:
        raise ValueError(f"Integer is too large: {i}")


def prepend_compact_size(data: bytes) -> bytes:
    """
    Counts bytes and returns them with their varint (or compact size) prepended.
    """
    return encode_varint(len(data)) + data


def hash160(data: bytes) -> bytes:
    """Returns RIPEMD160( SHA256( data ) )"""
    return ripemd160(hashlib.sha256(data).digest())


def tagged_hash(data: bytes, tag: str) -> bytes:
    """
    Tagged hashes ensure that hashes used in one context can not be used in another.
    It is used extensively in Taproot

    A tagged hash is: SHA256( SHA256("TapTweak") ||
                              SHA256("TapTweak") ||
                              data
                            )
    """

    tag_digest = hashlib.sha256(tag.encode()).digest()
    return hashlib.sha256(tag_digest + tag_digest + data).digest()


def tapleaf_tagged_hash(
    script: Script, leaf_version: int = LEAF_VERSION_TAPSCRIPT
) -> bytes:
    """Calculates the tagged hash for a tapleaf"""
    script_part = bytes([leaf_version]) + prepend_compact_size(script.to_bytes())
    return tagged_hash(script_part, "TapLeaf")


def tapbranch_tagged_hash(thashed_a: bytes, thashed_b: bytes) -> bytes:
    """Calculates the tagged hash for a tapbranch"""
    # order - smaller left side
    if thashed_a < thashed_b:
        return tagged_hash(thashed_a + thashed_b, "TapBranch")
    else:
        return tagged_hash(thashed_b + thashed_a, "TapBranch")


def get_tag_hashed_merkle_root(
    scripts: None | Script | list,
) -> bytes:
    """Tag hashed merkle root of all scripts - tag hashes tapleafs and branches
    as needed.

    Scripts is a list of list of Scripts describing the merkle tree of scripts to commit
    Example of scripts' list:  [ [A, B], C ]

    Raises
    ------
    ValueError
        if a branch of the tree contains more than two elements
    """
    # empty scripts or empty list
    if not scripts:
        return b""
    # if not list return tapleaf_hash of Script
    if not isinstance(scripts, list):
        return tapleaf_tagged_hash(scripts)

    if len(scripts) == 1:
        return get_tag_hashed_merkle_root(scripts[0])
    elif len(scripts) == 2:
        left = get_tag_hashed_merkle_root(scripts[0])
        right = get_tag_hashed_merkle_root(scripts[1])
        return tapbranch_tagged_hash(left, right)
    else:
        raise ValueError(
            "Invalid Merkle branch: List cannot have more than 2 branches."
        )


def calculate_tweak(internal_key_x: bytes, merkle_root: None | bytes) -> int:
    """
    Calculates the taproot tweak of an x-only internal key, committing to
    the merkle root when there is one.
    """

    if merkle_root:
        tweak = tagged_hash(internal_key_x + merkle_root, "TapTweak")
    else:
        tweak = tagged_hash(internal_key_x, "TapTweak")

    tweak_int = b_to_i(tweak)
    if tweak_int >= Secp256k1Params._order:
        raise ValueError("Taproot tweak is larger than the curve order")

    return tweak_int


def tweak_taproot_pubkey(internal_key_x: bytes, tweak: int) -> Tuple[bytes, bool]:
    """
    Tweaks the x-only internal key with the specified tweak (Q = P + t*G,
    where P is the point with even y). Returns the x-only output key and
    whether the output point's y coordinate is odd, which is needed for the
    control block.
    """

    x = b_to_i(internal_key_x)
    y_squared = (pow(x, 3, Secp256k1Params._p) + 7) % Secp256k1Params._p
    y = pow(y_squared, (Secp256k1Params._p + 1) // 4, Secp256k1Params._p)
    if pow(y, 2, Secp256k1Params._p) != y_squared:
        raise ValueError("Internal key is not a valid x coordinate")
    # lift_x always picks the even y
    if y % 2 != 0:
        y = Secp256k1Params._p - y

    P = VerifyingKey.from_string(i_to_b32(x) + i_to_b32(y), curve=SECP256k1)
    Q = P.pubkey.point + SECP256k1.generator * tweak

    return i_to_b32(Q.x()), Q.y() % 2 != 0


#
# Basic conversions between bytes (b), hexadecimal (h) and integer (i)
#
def b_to_h(b: bytes) -> str:
    """Converts bytes to hexadecimal string"""
    return b.hex()


def h_to_b(h: str) -> bytes:
    """Converts hexadecimal string to bytes"""
    return bytes.fromhex(h)


def h_to_i(hex_str: str) -> int:
    """Converts a string hexadecimal to a number"""
    return int(hex_str, base=16)


# to convert hashes to ints we need byteorder BIG...
def b_to_i(b: bytes) -> int:
    """Converts a bytes to a number"""
    return int.from_bytes(b, byteorder="big")


def i_to_b32(i: int) -> bytes:
    """Converts a integer to bytes"""
    return i.to_bytes(32, byteorder="big")
