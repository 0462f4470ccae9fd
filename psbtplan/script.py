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

import hashlib
import struct
from typing import Any

from psbtplan.utils import b_to_h, h_to_b, hash160


# Bitcoin's op codes used by descriptor scripts and miniscript fragments.
# Complete list at: https://en.bitcoin.it/wiki/Script
OP_CODES = {
    # constants
    "OP_0": b"\x00",
    "OP_FALSE": b"\x00",
    "OP_PUSHDATA1": b"\x4c",
    "OP_PUSHDATA2": b"\x4d",
    "OP_PUSHDATA4": b"\x4e",
    "OP_1NEGATE": b"\x4f",
    "OP_TRUE": b"\x51",
    # flow control
    "OP_NOP": b"\x61",
    "OP_IF": b"\x63",
    "OP_NOTIF": b"\x64",
    "OP_ELSE": b"\x67",
    "OP_ENDIF": b"\x68",
    "OP_VERIFY": b"\x69",
    "OP_RETURN": b"\x6a",
    # stack
    "OP_TOALTSTACK": b"\x6b",
    "OP_FROMALTSTACK": b"\x6c",
    "OP_IFDUP": b"\x73",
    "OP_DEPTH": b"\x74",
    "OP_DROP": b"\x75",
    "OP_DUP": b"\x76",
    "OP_NIP": b"\x77",
    "OP_OVER": b"\x78",
    "OP_SWAP": b"\x7c",
    "OP_SIZE": b"\x82",
    # bitwise logic
    "OP_EQUAL": b"\x87",
    "OP_EQUALVERIFY": b"\x88",
    # arithmetic
    "OP_1ADD": b"\x8b",
    "OP_NOT": b"\x91",
    "OP_0NOTEQUAL": b"\x92",
    "OP_ADD": b"\x93",
    "OP_BOOLAND": b"\x9a",
    "OP_BOOLOR": b"\x9b",
    "OP_NUMEQUAL": b"\x9c",
    "OP_NUMEQUALVERIFY": b"\x9d",
    # crypto
    "OP_RIPEMD160": b"\xa6",
    "OP_SHA256": b"\xa8",
    "OP_HASH160": b"\xa9",
    "OP_HASH256": b"\xaa",
    "OP_CHECKSIG": b"\xac",
    "OP_CHECKSIGVERIFY": b"\xad",
    "OP_CHECKMULTISIG": b"\xae",
    "OP_CHECKMULTISIGVERIFY": b"\xaf",
    "OP_CHECKSIGADD": b"\xba",
    # locktime
    "OP_CHECKLOCKTIMEVERIFY": b"\xb1",
    "OP_CHECKSEQUENCEVERIFY": b"\xb2",
}
# OP_1 .. OP_16
OP_CODES.update({f"OP_{n}": bytes([0x50 + n]) for n in range(1, 17)})


class Script:
    """Represents any script in Bitcoin

    A Script contains just a list of OP_CODES and also knows how to serialize
    into bytes

    Attributes
    ----------
    script : list
        the list with all the script OP_CODES and data (hex strings) or
        small integers

    Methods
    -------
    to_bytes()
        returns a serialized byte version of the script
    to_hex()
        returns a serialized version of the script in hex
    get_script()
        returns the list of strings that makes up this script
    to_p2sh_script_pub_key()
        converts script to p2sh scriptPubKey (locking script)
    to_p2wsh_script_pub_key()
        converts script to p2wsh scriptPubKey (locking script)

    Raises
    ------
    ValueError
        If string data is too large or integer is negative
    """

    def __init__(self, script: list[Any]):
        """See Script description"""
        self.script: list[Any] = script

    def _op_push_data(self, data: str) -> bytes:
        """Converts data to appropriate OP_PUSHDATA OP code including length"""
        data_bytes = h_to_b(data)

        if len(data_bytes) < 0x4C:
            return bytes([len(data_bytes)]) + data_bytes
        elif len(data_bytes) <= 0xFF:
            return b"\x4c" + bytes([len(data_bytes)]) + data_bytes
        elif len(data_bytes) <= 0xFFFF:
            return b"\x4d" + struct.pack("<H", len(data_bytes)) + data_bytes
        elif len(data_bytes) <= 0xFFFFFFFF:
            return b"\x4e" + struct.pack("<I", len(data_bytes)) + data_bytes
        else:
            raise ValueError("Data too large. Cannot push into script")

    def _push_integer(self, integer: int) -> bytes:
        """Converts integer to bytes; as signed little-endian integer"""
        if integer < 0:
            raise ValueError("Integer is currently required to be positive.")

        number_of_bytes = (integer.bit_length() + 7) // 8
        integer_bytes = integer.to_bytes(number_of_bytes, byteorder="little")

        if integer & (1 << number_of_bytes * 8 - 1):
            integer_bytes += b"\x00"

        return self._op_push_data(b_to_h(integer_bytes))

    def to_bytes(self) -> bytes:
        """Converts the script to bytes"""
        script_bytes = b""
        for token in self.script:
            if isinstance(token, int):
                if 0 <= token <= 16:
                    script_bytes += OP_CODES["OP_" + str(token)]
                else:
                    script_bytes += self._push_integer(token)
            elif token in OP_CODES:
                script_bytes += OP_CODES[token]
            else:
                script_bytes += self._op_push_data(token)
        return script_bytes

    def to_hex(self) -> str:
        """Converts the script to hexadecimal"""
        return b_to_h(self.to_bytes())

    def get_script(self) -> list[Any]:
        """Returns script as array of strings"""
        return self.script

    def to_p2sh_script_pub_key(self) -> "Script":
        """Converts script to p2sh scriptPubKey (locking script)"""
        return Script(["OP_HASH160", b_to_h(hash160(self.to_bytes())), "OP_EQUAL"])

    def to_p2wsh_script_pub_key(self) -> "Script":
        """Converts script to p2wsh scriptPubKey (locking script)"""
        sha256 = hashlib.sha256(self.to_bytes()).digest()
        return Script(["OP_0", b_to_h(sha256)])

    def __str__(self) -> str:
        return str(self.script)

    def __repr__(self) -> str:
        return f"Script({self.script})"

    # compare by serialization so that OP_0 and 0 are the same script
    def __eq__(self, _other: object) -> bool:
        if not isinstance(_other, Script):
            return False
        return self.to_bytes() == _other.to_bytes()

    def __hash__(self) -> int:
        return hash(self.to_bytes())
