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

import struct
from typing import List, Sequence

from psbtplan.constants import BIP32_PRIME, UINT32_MAX, BIP32_HARDENED_CHAR
from psbtplan.utils import b_to_h, h_to_b


def convert_bip32_strpath_to_intpath(n: str) -> List[int]:
    """Convert bip32 path str to list of uint32 integers with prime flags

    m/0/1'/2h -> [0, 0x80000001, 0x80000002]

    Raises
    ------
    ValueError
        if a child index cannot be parsed or is out of range
    """
    if not n:
        return []
    elements = n.rstrip("/").split("/")
    # cut leading "m" if present, but do not require it
    if elements[0] == "m":
        elements = elements[1:]

    path = []
    for x in elements:
        if x == "":
            continue
        prime = 0
        if x[-1] in ("'", "h", "H"):
            x = x[:-1]
            prime = BIP32_PRIME
        if not x.isdigit():
            raise ValueError(f"failed to parse bip32 path element: {x}")
        child_index = int(x)
        if child_index >= BIP32_PRIME:
            raise ValueError(f"bip32 path child index too large: {child_index}")
        path.append(child_index | prime)
    return path


def convert_bip32_intpath_to_strpath(
    path: Sequence[int], hardened_char: str = BIP32_HARDENED_CHAR
) -> str:
    """Convert a list of uint32 child indexes to a bip32 path str"""
    s = "m"
    for child_index in path:
        if not isinstance(child_index, int):
            raise TypeError(f"bip32 path child index must be int: {child_index}")
        if not (0 <= child_index <= UINT32_MAX):
            raise ValueError(f"bip32 path child index out of range: {child_index}")
        if child_index & BIP32_PRIME:
            s += f"/{child_index ^ BIP32_PRIME}{hardened_char}"
        else:
            s += f"/{child_index}"
    return s


class KeyOrigin:
    """The origin of a key in a HD hierarchy

    Attributes
    ----------
    fingerprint : bytes
        the 4 byte BIP-32 fingerprint of the master key
    path : list[int]
        the derivation path from the master key to this key

    Methods
    -------
    serialize()
        returns the origin as stored in PSBT derivation values
    to_string()
        returns the origin as shown in descriptors, e.g. d34db33f/84h/0h
    from_string(s)
        parses the descriptor form (classmethod)
    """

    def __init__(self, fingerprint: bytes, path: Sequence[int]) -> None:
        if len(fingerprint) != 4:
            raise ValueError("Master fingerprint must be exactly 4 bytes")
        self.fingerprint: bytes = fingerprint
        self.path: List[int] = list(path)

    @classmethod
    def from_string(cls, s: str) -> "KeyOrigin":
        """Creates an origin from <fingerprint hex>[/<index>...], the format
        used in descriptor key origins (with or without brackets)"""
        s = s.strip("[]")
        fingerprint, _, path = s.partition("/")
        return cls(h_to_b(fingerprint), convert_bip32_strpath_to_intpath(path))

    def serialize(self) -> bytes:
        """Fingerprint followed by each path element as little-endian uint32"""
        return self.fingerprint + struct.pack("<" + "I" * len(self.path), *self.path)

    def to_string(self) -> str:
        strpath = convert_bip32_intpath_to_strpath(self.path)
        # cut leading "m"
        return b_to_h(self.fingerprint) + strpath[1:]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KeyOrigin):
            return False
        return self.fingerprint == other.fingerprint and self.path == other.path

    def __hash__(self) -> int:
        return hash((self.fingerprint, tuple(self.path)))

    def __repr__(self) -> str:
        return f"KeyOrigin({self.to_string()})"
