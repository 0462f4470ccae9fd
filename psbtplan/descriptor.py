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

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Union

from psbtplan.bip32 import KeyOrigin, convert_bip32_strpath_to_intpath
from psbtplan.keys import PublicKey
from psbtplan.script import Script
from psbtplan.taproot import TaprootSpendInfo
from psbtplan.utils import b_to_h


class DescriptorPublicKey:
    """A public key as it appears in a descriptor, with its origin

    The key is already derived; the origin tells signers where it came from.

    Attributes
    ----------
    pubkey : PublicKey
        the (derived) public key
    origin : KeyOrigin or None
        the master fingerprint and path of the key, if known
    derivation_paths : list[list[int]]
        derivation steps following the origin path; more than one for
        multi-path keys (e.g. <0;1>/*)

    Methods
    -------
    master_fingerprint()
        the 4 byte fingerprint of the master key
    full_derivation_paths()
        all paths from the master key to this key
    is_multipath()
        whether the key resolves to more than one path
    to_public_key()
        returns the PublicKey
    to_x_only_pubkey()
        returns the 32 byte x-only form of the key
    from_string(s)
        creates a key from "[fingerprint/path]hexkey" (classmethod)
    """

    def __init__(
        self,
        pubkey: PublicKey,
        origin: Optional[KeyOrigin] = None,
        derivation_paths: Optional[Sequence[Sequence[int]]] = None,
    ) -> None:
        self.pubkey = pubkey
        self.origin = origin
        self.derivation_paths: List[List[int]] = [
            list(p) for p in (derivation_paths or [])
        ]

    @classmethod
    def from_string(cls, s: str, derivation_paths: Optional[Sequence[str]] = None):
        """Creates a key from its descriptor form with an optional origin,
        e.g. [d34db33f/84h/0h/0h]02c6047f... . Derivation paths, if given,
        are bip32 path strings relative to the origin path."""
        origin = None
        if s.startswith("["):
            origin_str, _, s = s[1:].partition("]")
            origin = KeyOrigin.from_string(origin_str)
        paths = None
        if derivation_paths:
            paths = [convert_bip32_strpath_to_intpath(p) for p in derivation_paths]
        return cls(PublicKey(s), origin, paths)

    def master_fingerprint(self) -> bytes:
        """Origin fingerprint, or the fingerprint of the key itself when it
        has no origin"""
        if self.origin is not None:
            return self.origin.fingerprint
        return self.pubkey._to_hash160()[:4]

    def full_derivation_paths(self) -> List[List[int]]:
        origin_path = self.origin.path if self.origin is not None else []
        if not self.derivation_paths:
            return [list(origin_path)]
        return [origin_path + path for path in self.derivation_paths]

    def is_multipath(self) -> bool:
        return len(self.derivation_paths) > 1

    def to_public_key(self) -> PublicKey:
        return self.pubkey

    def to_x_only_pubkey(self) -> bytes:
        return self.pubkey.to_x_only_bytes()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DescriptorPublicKey):
            return False
        return (
            self.pubkey == other.pubkey
            and self.origin == other.origin
            and self.derivation_paths == other.derivation_paths
        )

    def __hash__(self) -> int:
        return hash((self.pubkey, self.origin))

    def __repr__(self) -> str:
        origin = f"[{self.origin.to_string()}]" if self.origin else ""
        return f"DescriptorPublicKey({origin}{self.pubkey.to_hex()})"


class SortedMulti:
    """A k-of-n CHECKMULTISIG with keys sorted by their SEC encoding (BIP-67)"""

    def __init__(self, k: int, keys: Sequence[DescriptorPublicKey]) -> None:
        if not 1 <= k <= len(keys) <= 20:
            raise ValueError(f"Invalid multisig threshold {k} of {len(keys)}")
        self.k = k
        self.keys = list(keys)

    def encode(self) -> Script:
        sorted_keys = sorted(key.to_public_key().to_hex() for key in self.keys)
        return Script([self.k] + sorted_keys + [len(self.keys), "OP_CHECKMULTISIG"])


class Miniscript:
    """An already compiled miniscript fragment and the keys it commits to"""

    def __init__(
        self, script: Script, keys: Optional[Sequence[DescriptorPublicKey]] = None
    ) -> None:
        self.script = script
        self.keys = list(keys or [])

    def encode(self) -> Script:
        return self.script


ScriptInner = Union[SortedMulti, Miniscript]


class Descriptor(ABC):
    """Base class of all output descriptors

    Methods
    -------
    script_pubkey()
        returns the scriptPubKey (locking script) of the descriptor
    keys()
        returns all DescriptorPublicKeys of the descriptor
    """

    @abstractmethod
    def script_pubkey(self) -> Script:
        pass

    @abstractmethod
    def keys(self) -> List[DescriptorPublicKey]:
        pass


class Bare(Descriptor):
    """Bare script descriptor: the script is the scriptPubKey"""

    def __init__(self, inner: ScriptInner) -> None:
        if not isinstance(inner, (SortedMulti, Miniscript)):
            raise TypeError("Bare descriptor requires a script")
        self.inner = inner

    def inner_script(self) -> Script:
        return self.inner.encode()

    def script_pubkey(self) -> Script:
        return self.inner.encode()

    def keys(self) -> List[DescriptorPublicKey]:
        return list(self.inner.keys)


class Pkh(Descriptor):
    def __init__(self, key: DescriptorPublicKey) -> None:
        self.key = key

    def script_pubkey(self) -> Script:
        return Script(
            [
                "OP_DUP",
                "OP_HASH160",
                self.key.to_public_key().to_hash160(),
                "OP_EQUALVERIFY",
                "OP_CHECKSIG",
            ]
        )

    def keys(self) -> List[DescriptorPublicKey]:
        return [self.key]


class Wpkh(Descriptor):
    def __init__(self, key: DescriptorPublicKey) -> None:
        self.key = key

    def script_pubkey(self) -> Script:
        return Script(["OP_0", self.key.to_public_key().to_hash160()])

    def keys(self) -> List[DescriptorPublicKey]:
        return [self.key]


class Wsh(Descriptor):
    def __init__(self, inner: ScriptInner) -> None:
        if not isinstance(inner, (SortedMulti, Miniscript)):
            raise TypeError("Wsh descriptor requires a sortedmulti or miniscript")
        self.inner = inner

    def inner_script(self) -> Script:
        """The witness script"""
        return self.inner.encode()

    def script_pubkey(self) -> Script:
        return self.inner_script().to_p2wsh_script_pub_key()

    def keys(self) -> List[DescriptorPublicKey]:
        return list(self.inner.keys)


class Sh(Descriptor):
    """P2SH descriptor wrapping a Wsh, a Wpkh or a bare script"""

    def __init__(self, inner: Union[Wsh, Wpkh, SortedMulti, Miniscript]) -> None:
        if not isinstance(inner, (Wsh, Wpkh, SortedMulti, Miniscript)):
            raise TypeError(f"Invalid inner descriptor for sh: {type(inner).__name__}")
        self.inner = inner

    def inner_script(self) -> Script:
        """The redeem script"""
        if isinstance(self.inner, (Wsh, Wpkh)):
            return self.inner.script_pubkey()
        return self.inner.encode()

    def script_pubkey(self) -> Script:
        return self.inner_script().to_p2sh_script_pub_key()

    def keys(self) -> List[DescriptorPublicKey]:
        return self.inner.keys() if isinstance(self.inner, Descriptor) else list(self.inner.keys)


def _tree_scripts(tree):
    """Replaces miniscript leafs of a tree with their scripts"""
    if tree is None:
        return None
    if isinstance(tree, list):
        return [_tree_scripts(branch) for branch in tree]
    if isinstance(tree, Miniscript):
        return tree.encode()
    return tree


def _tree_keys(tree) -> List[DescriptorPublicKey]:
    if isinstance(tree, list):
        return [key for branch in tree for key in _tree_keys(branch)]
    if isinstance(tree, Miniscript):
        return list(tree.keys)
    return []


class Tr(Descriptor):
    """Taproot descriptor

    Attributes
    ----------
    internal_key : DescriptorPublicKey
        the key of the key-spend path
    tree : list
        the script tree as nested lists of Script or Miniscript leafs,
        e.g. [ [A, B], C ], or None for key-spend only outputs
    """

    def __init__(self, internal_key: DescriptorPublicKey, tree=None) -> None:
        self.internal_key = internal_key
        self.tree = tree
        self._spend_info: Optional[TaprootSpendInfo] = None

    def spend_info(self) -> TaprootSpendInfo:
        if self._spend_info is None:
            self._spend_info = TaprootSpendInfo(
                self.internal_key.to_public_key(), _tree_scripts(self.tree)
            )
        return self._spend_info

    def script_pubkey(self) -> Script:
        return Script(["OP_1", b_to_h(self.spend_info().output_key)])

    def keys(self) -> List[DescriptorPublicKey]:
        return [self.internal_key] + _tree_keys(self.tree)
