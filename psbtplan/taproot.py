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

from typing import Optional

from psbtplan.constants import (
    LEAF_VERSION_TAPSCRIPT,
    TAPROOT_LEAF_MASK,
    TAPROOT_CONTROL_BASE_SIZE,
    TAPROOT_CONTROL_NODE_SIZE,
    TAPROOT_CONTROL_MAX_NODE_COUNT,
)
from psbtplan.keys import PublicKey
from psbtplan.script import Script
from psbtplan.utils import (
    b_to_h,
    calculate_tweak,
    get_tag_hashed_merkle_root,
    tapbranch_tagged_hash,
    tapleaf_tagged_hash,
    tweak_taproot_pubkey,
)


class ControlBlock:
    """Represents a control block for spending a taproot script path

    Attributes
    ----------
    pubkey : PublicKey
        the internal public key object
    merkle_path : bytes
        the concatenated hashes proving the leaf's inclusion
    is_odd : bool
        whether the output key has an odd y coordinate
    leaf_version : int
        the leaf version of the script being spent

    Methods
    -------
    to_bytes()
        returns the control block as bytes
    to_hex()
        returns the control block as a hexadecimal string
    from_bytes(b)
        parses a serialized control block (classmethod)
    """

    def __init__(
        self,
        pubkey: PublicKey,
        merkle_path: bytes = b"",
        is_odd: bool = False,
        leaf_version: int = LEAF_VERSION_TAPSCRIPT,
    ):
        if len(merkle_path) % TAPROOT_CONTROL_NODE_SIZE != 0:
            raise ValueError("Merkle path must be a multiple of 32 bytes")
        if len(merkle_path) // TAPROOT_CONTROL_NODE_SIZE > TAPROOT_CONTROL_MAX_NODE_COUNT:
            raise ValueError("Merkle path is too long")
        self.pubkey = pubkey
        self.merkle_path = merkle_path
        self.is_odd = is_odd
        self.leaf_version = leaf_version

    @classmethod
    def from_bytes(cls, b: bytes) -> "ControlBlock":
        if len(b) < TAPROOT_CONTROL_BASE_SIZE:
            raise ValueError(f"Control block is too short: {len(b)} bytes")
        pubkey = PublicKey(b_to_h(b[1:TAPROOT_CONTROL_BASE_SIZE]))
        return cls(
            pubkey,
            b[TAPROOT_CONTROL_BASE_SIZE:],
            is_odd=bool(b[0] & 1),
            leaf_version=b[0] & TAPROOT_LEAF_MASK,
        )

    def to_bytes(self) -> bytes:
        leaf_version = bytes([(1 if self.is_odd else 0) + self.leaf_version])
        # x-only public key is required
        return leaf_version + self.pubkey.to_x_only_bytes() + self.merkle_path

    def to_hex(self):
        """Converts object to hexadecimal string"""
        return b_to_h(self.to_bytes())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ControlBlock):
            return False
        return self.to_bytes() == other.to_bytes()

    def __lt__(self, other: "ControlBlock") -> bool:
        return self.to_bytes() < other.to_bytes()

    def __hash__(self) -> int:
        return hash(self.to_bytes())

    def __repr__(self) -> str:
        return f"ControlBlock({self.to_hex()})"


def _generate_merkle_path(all_leafs, target_leaf_index: int) -> Optional[bytes]:
    """Generate the merkle path for spending a taproot path.

    Parameters
    ----------
    all_leafs : list
        List of all taproot leaf scripts. Can be nested.
    target_leaf_index : int
        Index (depth first) of the target leaf script.

    Returns
    ----------
    merkle_path : bytes
        The sibling hashes from the leaf up to the root, or None if there is
        no leaf with that index.
    """
    traversed = 0

    def traverse_level(level):
        nonlocal traversed
        if isinstance(level, list):
            if len(level) == 1:
                return traverse_level(level[0])
            if len(level) == 2:
                a, a_found = traverse_level(level[0])
                b, b_found = traverse_level(level[1])
                if a_found:
                    return (a + b), True
                if b_found:
                    return (b + a), True
                return tapbranch_tagged_hash(a, b), False
            raise ValueError(
                "Invalid Merkle branch: List cannot have more than 2 branches."
            )
        if traversed == target_leaf_index:
            traversed += 1
            return b"", True
        traversed += 1
        return tapleaf_tagged_hash(level), False

    merkle_path, found = traverse_level(all_leafs)
    return merkle_path if found else None


def _flatten_leafs(scripts) -> list[Script]:
    if not scripts:
        return []
    if not isinstance(scripts, list):
        return [scripts]
    leafs: list[Script] = []
    for branch in scripts:
        leafs.extend(_flatten_leafs(branch))
    return leafs


class TaprootSpendInfo:
    """Information required to spend a taproot output

    The script tree is given in the same nested list form used throughout the
    library, e.g. [ [A, B], C ], where every list has at most two branches.

    Attributes
    ----------
    internal_key : PublicKey
        the internal (untweaked) key
    scripts : list
        the script tree, or None for a key-only output
    merkle_root : bytes or None
        the tagged merkle root of the script tree
    output_key : bytes
        the x-only tweaked output key
    output_key_parity : bool
        True if the tweaked output key has an odd y coordinate
    """

    def __init__(self, internal_key: PublicKey, scripts=None):
        self.internal_key = internal_key
        self.scripts = scripts
        root = get_tag_hashed_merkle_root(scripts)
        self.merkle_root: Optional[bytes] = root if root else None

        tweak = calculate_tweak(internal_key.to_x_only_bytes(), self.merkle_root)
        self.output_key, self.output_key_parity = tweak_taproot_pubkey(
            internal_key.to_x_only_bytes(), tweak
        )

    def leafs(self) -> list[Script]:
        """Returns the leaf scripts in depth first order"""
        return _flatten_leafs(self.scripts)

    def leaf_hash(self, script: Script) -> bytes:
        if script not in self.leafs():
            raise ValueError(f"Script {script} is not a leaf of the tree")
        return tapleaf_tagged_hash(script)

    def control_block(self, script: Script) -> ControlBlock:
        """Returns the control block that proves script is a leaf of the tree

        Raises
        ------
        ValueError
            if script is not one of the leafs
        """
        leafs = self.leafs()
        if script not in leafs:
            raise ValueError(f"Script {script} is not a leaf of the tree")
        merkle_path = _generate_merkle_path(self.scripts, leafs.index(script))
        assert merkle_path is not None
        return ControlBlock(
            self.internal_key, merkle_path, is_odd=self.output_key_parity
        )
