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
from io import BytesIO
from typing import Dict, List, Optional, Tuple

from psbtplan.bip32 import KeyOrigin
from psbtplan.script import Script
from psbtplan.taproot import ControlBlock
from psbtplan.utils import b_to_h, encode_varint, prepend_compact_size


class PSBTInput:
    """The per-input map of a PSBT

    Field names follow BIP-174 and the taproot extensions of BIP-371.

    Attributes
    ----------
    non_witness_utxo : bytes
        the serialized transaction of the spent output
    witness_utxo : (int, Script)
        amount and scriptPubKey of the spent output
    partial_sigs : dict
        SEC pubkey -> signature
    sighash_type : int
    redeem_script : Script
    witness_script : Script
    bip32_derivation : dict
        SEC pubkey -> KeyOrigin
    final_scriptsig : Script
    final_scriptwitness : list[bytes]
    tap_key_sig : bytes
    tap_script_sigs : dict
        (x-only pubkey, leaf hash) -> signature
    tap_scripts : dict
        ControlBlock -> (Script, leaf version)
    tap_key_origins : dict
        x-only pubkey -> (list of leaf hashes, KeyOrigin)
    tap_internal_key : bytes
        x-only internal key
    tap_merkle_root : bytes
    unknown : dict
        raw key -> raw value of pairs this library doesn't interpret
    """

    SEPARATOR = b"\x00"

    # Key types as defined in BIP-174 and BIP-371
    class InputTypes:
        NON_WITNESS_UTXO = 0x00
        WITNESS_UTXO = 0x01
        PARTIAL_SIG = 0x02
        SIGHASH_TYPE = 0x03
        REDEEM_SCRIPT = 0x04
        WITNESS_SCRIPT = 0x05
        BIP32_DERIVATION = 0x06
        FINAL_SCRIPTSIG = 0x07
        FINAL_SCRIPTWITNESS = 0x08
        TAP_KEY_SIG = 0x13
        TAP_SCRIPT_SIG = 0x14
        TAP_LEAF_SCRIPT = 0x15
        TAP_BIP32_DERIVATION = 0x16
        TAP_INTERNAL_KEY = 0x17
        TAP_MERKLE_ROOT = 0x18

    def __init__(self):
        # BIP-174 defined fields
        self.non_witness_utxo: Optional[bytes] = None
        self.witness_utxo: Optional[Tuple[int, Script]] = None
        self.partial_sigs: Dict[bytes, bytes] = {}
        self.sighash_type: Optional[int] = None
        self.redeem_script: Optional[Script] = None
        self.witness_script: Optional[Script] = None
        self.bip32_derivation: Dict[bytes, KeyOrigin] = {}
        self.final_scriptsig: Optional[Script] = None
        self.final_scriptwitness: List[bytes] = []

        # BIP-371 taproot fields
        self.tap_key_sig: Optional[bytes] = None
        self.tap_script_sigs: Dict[Tuple[bytes, bytes], bytes] = {}
        self.tap_scripts: Dict[ControlBlock, Tuple[Script, int]] = {}
        self.tap_key_origins: Dict[bytes, Tuple[List[bytes], KeyOrigin]] = {}
        self.tap_internal_key: Optional[bytes] = None
        self.tap_merkle_root: Optional[bytes] = None

        self.unknown: Dict[bytes, bytes] = {}

    def to_bytes(self) -> bytes:
        """Serializes the input map, terminated by the separator"""
        result = BytesIO()

        if self.non_witness_utxo is not None:
            self._write_key_value_pair(
                result, self.InputTypes.NON_WITNESS_UTXO, b"", self.non_witness_utxo
            )

        if self.witness_utxo is not None:
            amount, script_pubkey = self.witness_utxo
            witness_data = struct.pack("<q", amount) + prepend_compact_size(
                script_pubkey.to_bytes()
            )
            self._write_key_value_pair(result, self.InputTypes.WITNESS_UTXO, b"", witness_data)

        for pubkey, signature in sorted(self.partial_sigs.items()):
            self._write_key_value_pair(result, self.InputTypes.PARTIAL_SIG, pubkey, signature)

        if self.sighash_type is not None:
            self._write_key_value_pair(
                result, self.InputTypes.SIGHASH_TYPE, b"", struct.pack("<I", self.sighash_type)
            )

        if self.redeem_script is not None:
            self._write_key_value_pair(
                result, self.InputTypes.REDEEM_SCRIPT, b"", self.redeem_script.to_bytes()
            )

        if self.witness_script is not None:
            self._write_key_value_pair(
                result, self.InputTypes.WITNESS_SCRIPT, b"", self.witness_script.to_bytes()
            )

        for pubkey, origin in sorted(self.bip32_derivation.items()):
            self._write_key_value_pair(
                result, self.InputTypes.BIP32_DERIVATION, pubkey, origin.serialize()
            )

        if self.final_scriptsig is not None:
            self._write_key_value_pair(
                result, self.InputTypes.FINAL_SCRIPTSIG, b"", self.final_scriptsig.to_bytes()
            )

        if self.final_scriptwitness:
            witness_data = encode_varint(len(self.final_scriptwitness))
            for item in self.final_scriptwitness:
                witness_data += prepend_compact_size(item)
            self._write_key_value_pair(
                result, self.InputTypes.FINAL_SCRIPTWITNESS, b"", witness_data
            )

        if self.tap_key_sig is not None:
            self._write_key_value_pair(result, self.InputTypes.TAP_KEY_SIG, b"", self.tap_key_sig)

        for (xonly, leaf_hash), signature in sorted(self.tap_script_sigs.items()):
            self._write_key_value_pair(
                result, self.InputTypes.TAP_SCRIPT_SIG, xonly + leaf_hash, signature
            )

        for control_block, (script, leaf_version) in sorted(self.tap_scripts.items()):
            self._write_key_value_pair(
                result,
                self.InputTypes.TAP_LEAF_SCRIPT,
                control_block.to_bytes(),
                script.to_bytes() + bytes([leaf_version]),
            )

        for xonly, (leaf_hashes, origin) in sorted(self.tap_key_origins.items()):
            value_data = encode_varint(len(leaf_hashes)) + b"".join(leaf_hashes)
            self._write_key_value_pair(
                result,
                self.InputTypes.TAP_BIP32_DERIVATION,
                xonly,
                value_data + origin.serialize(),
            )

        if self.tap_internal_key is not None:
            self._write_key_value_pair(
                result, self.InputTypes.TAP_INTERNAL_KEY, b"", self.tap_internal_key
            )

        if self.tap_merkle_root is not None:
            self._write_key_value_pair(
                result, self.InputTypes.TAP_MERKLE_ROOT, b"", self.tap_merkle_root
            )

        # unknown keys already include their type
        for key, value in sorted(self.unknown.items()):
            result.write(prepend_compact_size(key))
            result.write(prepend_compact_size(value))

        result.write(self.SEPARATOR)
        return result.getvalue()

    def to_hex(self) -> str:
        return b_to_h(self.to_bytes())

    @staticmethod
    def _write_key_value_pair(
        result: BytesIO, key_type: int, key_data: bytes, value_data: bytes
    ) -> None:
        """Write a key-value pair to the stream."""
        result.write(prepend_compact_size(encode_varint(key_type) + key_data))
        result.write(prepend_compact_size(value_data))
