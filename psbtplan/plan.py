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

import logging
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence

from psbtplan.bip32 import KeyOrigin
from psbtplan.constants import LEAF_VERSION_TAPSCRIPT
from psbtplan.descriptor import (
    Bare,
    Descriptor,
    DescriptorPublicKey,
    Miniscript,
    Pkh,
    Sh,
    SortedMulti,
    Tr,
    Wpkh,
    Wsh,
)
from psbtplan.script import Script
from psbtplan.taproot import ControlBlock

if TYPE_CHECKING:
    from psbtplan.psbt import PSBTInput


logger = logging.getLogger(__name__)


#
# Schnorr signature types
#
class SchnorrSigType:
    """How a schnorr signature placeholder is going to be used"""

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and vars(self) == vars(other)

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in vars(self).items())
        return f"{type(self).__name__}({fields})"


class KeySpend(SchnorrSigType):
    """Signature for the key-spend path of a taproot output"""

    def __init__(self, merkle_root: Optional[bytes] = None) -> None:
        self.merkle_root = merkle_root


class ScriptSpend(SchnorrSigType):
    """Signature for the script leaf identified by leaf_hash"""

    def __init__(self, leaf_hash: bytes) -> None:
        self.leaf_hash = leaf_hash


#
# Placeholders
#
class Placeholder:
    """One item of a plan's witness template

    Placeholders describe the data a signer (or finalizer) has to provide to
    satisfy the descriptor; they don't hold the data themselves.
    """

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and vars(self) == vars(other)

    def __repr__(self) -> str:
        fields = ", ".join(f"{v!r}" for v in vars(self).values())
        return f"{type(self).__name__}({fields})"


class PubKey(Placeholder):
    """Public key and its size"""

    def __init__(self, key: DescriptorPublicKey, size: int = 34) -> None:
        self.key = key
        self.size = size


class PubKeyHash(Placeholder):
    """Public key hash and the size of the key it commits to"""

    def __init__(self, key: DescriptorPublicKey, size: int = 34) -> None:
        self.key = key
        self.size = size


class EcdsaSigPk(Placeholder):
    """ECDSA signature given the raw pubkey"""

    def __init__(self, key: DescriptorPublicKey) -> None:
        self.key = key


class EcdsaSigPkHash(Placeholder):
    """ECDSA signature given the hash160 of a pubkey"""

    def __init__(self, key_hash: bytes) -> None:
        self.key_hash = key_hash


class SchnorrSigPk(Placeholder):
    """Schnorr signature given the pubkey and the kind of spend"""

    def __init__(
        self, key: DescriptorPublicKey, sig_type: SchnorrSigType, size: int = 64
    ) -> None:
        self.key = key
        self.sig_type = sig_type
        self.size = size


class SchnorrSigPkHash(Placeholder):
    """Schnorr signature for the script leaf leaf_hash, given the key hash"""

    def __init__(
        self, key: DescriptorPublicKey, leaf_hash: bytes, size: int = 64
    ) -> None:
        self.key = key
        self.leaf_hash = leaf_hash
        self.size = size


class Sha256Preimage(Placeholder):
    def __init__(self, hash: bytes) -> None:
        self.hash = hash


class Hash256Preimage(Placeholder):
    def __init__(self, hash: bytes) -> None:
        self.hash = hash


class Ripemd160Preimage(Placeholder):
    def __init__(self, hash: bytes) -> None:
        self.hash = hash


class Hash160Preimage(Placeholder):
    def __init__(self, hash: bytes) -> None:
        self.hash = hash


class PushOne(Placeholder):
    """OP_1 pushed to the witness"""


class PushZero(Placeholder):
    """Empty push to the witness"""


class TapScript(Placeholder):
    """The taproot leaf script being spent"""

    def __init__(self, script: Script) -> None:
        self.script = script


class TapControlBlock(Placeholder):
    """The control block of the taproot leaf being spent"""

    def __init__(self, control_block: ControlBlock) -> None:
        self.control_block = control_block


class Plan:
    """A resolved way of spending an output described by a descriptor

    Attributes
    ----------
    descriptor : Descriptor
        the descriptor the plan was derived from
    template : list[Placeholder]
        the witness template, in order
    absolute_timelock : int or None
        the nLockTime the spend requires, if any
    relative_timelock : int or None
        the nSequence the spend requires, if any
    """

    def __init__(
        self,
        descriptor: Descriptor,
        template: Sequence[Placeholder],
        absolute_timelock: Optional[int] = None,
        relative_timelock: Optional[int] = None,
    ) -> None:
        self.descriptor = descriptor
        self.template: List[Placeholder] = list(template)
        self.absolute_timelock = absolute_timelock
        self.relative_timelock = relative_timelock

    def update_psbt_input(self, psbt_input: PSBTInput) -> None:
        """See update_psbt_input()"""
        update_psbt_input(self, psbt_input)


#
# Populating PSBT inputs
#
class _TaprootKeySpend:
    def __init__(self, internal_key: bytes) -> None:
        self.internal_key = internal_key


class _TaprootScriptSpend:
    def __init__(self, leaf_hash: bytes) -> None:
        self.leaf_hash = leaf_hash


def _key_origins(key: DescriptorPublicKey) -> List[KeyOrigin]:
    fingerprint = key.master_fingerprint()
    return [KeyOrigin(fingerprint, path) for path in key.full_derivation_paths()]


class TaprootInputData:
    """What a taproot plan's template says about the input

    Attributes
    ----------
    tap_script : Script or None
        the leaf script to be spent
    control_block : ControlBlock or None
        the control block of that leaf
    spend_type : key-spend or script-spend classification, or None
    key_origins : dict
        x-only key -> KeyOrigin of every key that signs
    """

    def __init__(self) -> None:
        self.tap_script: Optional[Script] = None
        self.control_block: Optional[ControlBlock] = None
        self.spend_type: Optional[object] = None
        self.key_origins: Dict[bytes, KeyOrigin] = {}

    @classmethod
    def from_template(cls, template: Sequence[Placeholder]) -> "TaprootInputData":
        data = cls()
        for item in template:
            data.add(item)
        return data

    def _add_key(self, key: DescriptorPublicKey) -> None:
        # keyed by key: the last path of a multi-path key is kept
        for origin in _key_origins(key):
            self.key_origins[key.to_x_only_pubkey()] = origin

    def add(self, item: Placeholder) -> None:
        """Folds one placeholder into the data

        Raises
        ------
        AssertionError
            if the template mixes key-spend and script-spend signatures
        """
        if isinstance(item, TapScript):
            self.tap_script = item.script
        elif isinstance(item, TapControlBlock):
            self.control_block = item.control_block
        elif isinstance(item, SchnorrSigPk):
            sig_type = item.sig_type
            if self.spend_type is None:
                if isinstance(sig_type, KeySpend):
                    self.spend_type = _TaprootKeySpend(item.key.to_x_only_pubkey())
                elif isinstance(sig_type, ScriptSpend):
                    self.spend_type = _TaprootScriptSpend(sig_type.leaf_hash)
            elif (
                isinstance(self.spend_type, _TaprootKeySpend)
                and isinstance(sig_type, ScriptSpend)
            ) or (
                isinstance(self.spend_type, _TaprootScriptSpend)
                and isinstance(sig_type, KeySpend)
            ):
                raise AssertionError(
                    "Mixed taproot key-spend and script-spend placeholders in the same plan"
                )
            self._add_key(item.key)
        elif isinstance(item, SchnorrSigPkHash):
            self.spend_type = _TaprootScriptSpend(item.leaf_hash)
            self._add_key(item.key)


def _update_taproot_input(plan: Plan, descriptor: Tr, psbt_input: PSBTInput) -> None:
    # folding may abort; the input is left untouched in that case
    data = TaprootInputData.from_template(plan.template)

    psbt_input.tap_merkle_root = descriptor.spend_info().merkle_root

    # the tap tree itself is not reconstructed from the plan
    leaf_hash = None
    if isinstance(data.spend_type, _TaprootKeySpend):
        psbt_input.tap_internal_key = data.spend_type.internal_key
        logger.debug("Taproot key-spend input")
    elif isinstance(data.spend_type, _TaprootScriptSpend):
        leaf_hash = data.spend_type.leaf_hash
        logger.debug("Taproot script-spend input, leaf %s", leaf_hash.hex())

    for xonly, origin in data.key_origins.items():
        if xonly not in psbt_input.tap_key_origins:
            leaf_hashes = [leaf_hash] if leaf_hash is not None else []
            psbt_input.tap_key_origins[xonly] = (leaf_hashes, origin)
        else:
            leaf_hashes, _ = psbt_input.tap_key_origins[xonly]
            if leaf_hash is not None and leaf_hash not in leaf_hashes:
                leaf_hashes.append(leaf_hash)
    logger.debug("Merged origins of %d taproot keys", len(data.key_origins))

    if data.tap_script is not None and data.control_block is not None:
        psbt_input.tap_scripts[data.control_block] = (
            data.tap_script,
            LEAF_VERSION_TAPSCRIPT,
        )


def _update_segwit_input(plan: Plan, psbt_input: PSBTInput) -> None:
    for item in plan.template:
        if isinstance(item, EcdsaSigPk):
            pubkey = item.key.to_public_key().to_sec_bytes()
            for origin in _key_origins(item.key):
                psbt_input.bip32_derivation[pubkey] = origin

    descriptor = plan.descriptor
    if isinstance(descriptor, (Bare, Pkh, Wpkh)):
        pass
    elif isinstance(descriptor, Sh):
        inner = descriptor.inner
        if isinstance(inner, Wsh):
            psbt_input.witness_script = inner.inner_script()
            psbt_input.redeem_script = inner.inner_script().to_p2wsh_script_pub_key()
        elif isinstance(inner, Wpkh):
            psbt_input.redeem_script = descriptor.inner_script()
        elif isinstance(inner, (SortedMulti, Miniscript)):
            psbt_input.redeem_script = descriptor.inner_script()
        else:
            raise AssertionError(f"Invalid sh inner descriptor: {type(inner).__name__}")
    elif isinstance(descriptor, Wsh):
        psbt_input.witness_script = descriptor.inner_script()
    elif isinstance(descriptor, Tr):
        raise AssertionError("Tr is dealt with separately")
    else:
        raise TypeError(f"Unknown descriptor type: {type(descriptor).__name__}")

    logger.debug(
        "%s input, %d bip32 derivations",
        type(descriptor).__name__,
        len(psbt_input.bip32_derivation),
    )


def update_psbt_input(plan: Plan, psbt_input: PSBTInput) -> None:
    """Updates a PSBT input with the metadata required to complete the plan

    Only the metadata of the items used by the plan is added. For example, if
    there are multiple keys in the descriptor, only the ones that have to sign
    for this plan end up in the input.

    Parameters
    ----------
    plan : Plan
        the plan of the output spent by the input
    psbt_input : PSBTInput
        the input to update in place

    Raises
    ------
    AssertionError
        if a taproot plan mixes key-spend and script-spend signatures; such a
        plan is invalid and cannot be used for either path
    """
    if isinstance(plan.descriptor, Tr):
        _update_taproot_input(plan, plan.descriptor, psbt_input)
    else:
        _update_segwit_input(plan, psbt_input)
