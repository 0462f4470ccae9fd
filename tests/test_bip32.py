# Copyright (C) 2018-2025 The python-bitcoin-utils developers
#
# This file is part of python-bitcoin-utils
#
# It is subject to the license terms in the LICENSE file found in the top-level
# directory of this distribution.
#
# No part of python-bitcoin-utils, including this file, may be copied,
# modified, propagated, or distributed except according to the terms contained
# in the LICENSE file.


import unittest

from psbtplan.bip32 import (
    KeyOrigin,
    convert_bip32_intpath_to_strpath,
    convert_bip32_strpath_to_intpath,
)


class TestBip32Paths(unittest.TestCase):
    def test_str_to_int(self):
        self.assertEqual(
            convert_bip32_strpath_to_intpath("m/84'/1h/0H/1/5"),
            [0x80000054, 0x80000001, 0x80000000, 1, 5],
        )
        self.assertEqual(convert_bip32_strpath_to_intpath("m"), [])
        self.assertEqual(convert_bip32_strpath_to_intpath(""), [])
        self.assertEqual(convert_bip32_strpath_to_intpath("0/1/"), [0, 1])

    def test_int_to_str(self):
        self.assertEqual(
            convert_bip32_intpath_to_strpath([0x80000056, 0x80000000, 0, 7]),
            "m/86h/0h/0/7",
        )
        self.assertEqual(
            convert_bip32_intpath_to_strpath([0x80000030, 2], hardened_char="'"),
            "m/48'/2",
        )
        self.assertEqual(convert_bip32_intpath_to_strpath([]), "m")

    def test_invalid_paths(self):
        with self.assertRaises(ValueError):
            convert_bip32_strpath_to_intpath("m/84'/x")
        with self.assertRaises(ValueError):
            convert_bip32_strpath_to_intpath("m/2147483648")
        with self.assertRaises(ValueError):
            convert_bip32_intpath_to_strpath([1 << 32])
        with self.assertRaises(TypeError):
            convert_bip32_intpath_to_strpath(["1"])


class TestKeyOrigin(unittest.TestCase):
    def test_from_string(self):
        origin = KeyOrigin.from_string("[d34db33f/49h/0h/0h]")
        self.assertEqual(origin.fingerprint, bytes.fromhex("d34db33f"))
        self.assertEqual(origin.path, [0x80000031, 0x80000000, 0x80000000])
        self.assertEqual(origin.to_string(), "d34db33f/49h/0h/0h")

    def test_serialize(self):
        origin = KeyOrigin(bytes.fromhex("deadbeef"), [0x80000054, 1])
        self.assertEqual(origin.serialize().hex(), "deadbeef" "54000080" "01000000")

    def test_equality(self):
        self.assertEqual(
            KeyOrigin(b"\x01\x02\x03\x04", [1, 2]),
            KeyOrigin.from_string("01020304/1/2"),
        )
        self.assertNotEqual(
            KeyOrigin(b"\x01\x02\x03\x04", [1, 2]), KeyOrigin(b"\x01\x02\x03\x04", [1])
        )

    def test_invalid_fingerprint(self):
        with self.assertRaises(ValueError):
            KeyOrigin(b"\x01\x02\x03", [])


if __name__ == "__main__":
    unittest.main()
