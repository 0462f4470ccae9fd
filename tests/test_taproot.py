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

from psbtplan.keys import PrivateKey, PublicKey
from psbtplan.script import Script
from psbtplan.taproot import ControlBlock, TaprootSpendInfo
from psbtplan.utils import tapbranch_tagged_hash, tapleaf_tagged_hash


class TestTaprootSpendInfo(unittest.TestCase):
    def setUp(self):
        self.internal = PrivateKey(secret_exponent=1).get_public_key()
        self.script_a = Script(
            [PrivateKey(secret_exponent=2).get_public_key().to_x_only_hex(), "OP_CHECKSIG"]
        )
        self.script_b = Script(
            [PrivateKey(secret_exponent=3).get_public_key().to_x_only_hex(), "OP_CHECKSIG"]
        )
        self.script_c = Script([144, "OP_CHECKSEQUENCEVERIFY"])

    def test_bip86_key_path_only(self):
        # BIP-86 test vector, first receiving address of account 0
        internal = PublicKey(
            "cc8a4bc64d897bddc5fbc2f670f7a8ba0b386779106cf1223c6fc5d7cd6fc115"
        )
        info = TaprootSpendInfo(internal)
        self.assertIsNone(info.merkle_root)
        self.assertEqual(
            info.output_key.hex(),
            "a60869f0dbcf1dc659c9cecbaf8050135ea9e8cdc487053f1dc6880949dc684c",
        )
        self.assertEqual(info.leafs(), [])

    def test_single_leaf(self):
        info = TaprootSpendInfo(self.internal, [self.script_a])
        self.assertEqual(info.merkle_root, tapleaf_tagged_hash(self.script_a))
        self.assertEqual(info.leaf_hash(self.script_a), tapleaf_tagged_hash(self.script_a))

        control_block = info.control_block(self.script_a)
        self.assertEqual(control_block.merkle_path, b"")
        self.assertEqual(
            control_block.to_bytes(),
            bytes([0xC0 | int(info.output_key_parity)])
            + self.internal.to_x_only_bytes(),
        )

    def test_two_leafs(self):
        info = TaprootSpendInfo(self.internal, [self.script_a, self.script_b])
        leaf_a = tapleaf_tagged_hash(self.script_a)
        leaf_b = tapleaf_tagged_hash(self.script_b)
        self.assertEqual(info.merkle_root, tapbranch_tagged_hash(leaf_a, leaf_b))
        self.assertEqual(info.control_block(self.script_a).merkle_path, leaf_b)
        self.assertEqual(info.control_block(self.script_b).merkle_path, leaf_a)

    def test_nested_tree(self):
        info = TaprootSpendInfo(
            self.internal, [[self.script_a, self.script_b], self.script_c]
        )
        leaf_a = tapleaf_tagged_hash(self.script_a)
        leaf_b = tapleaf_tagged_hash(self.script_b)
        leaf_c = tapleaf_tagged_hash(self.script_c)
        self.assertEqual(info.leafs(), [self.script_a, self.script_b, self.script_c])
        self.assertEqual(
            info.control_block(self.script_a).merkle_path, leaf_b + leaf_c
        )
        self.assertEqual(
            info.control_block(self.script_c).merkle_path,
            tapbranch_tagged_hash(leaf_a, leaf_b),
        )

    def test_unknown_leaf(self):
        info = TaprootSpendInfo(self.internal, [self.script_a])
        with self.assertRaises(ValueError):
            info.control_block(self.script_b)
        with self.assertRaises(ValueError):
            info.leaf_hash(self.script_b)

    def test_tweak_changes_with_tree(self):
        key_only = TaprootSpendInfo(self.internal)
        with_script = TaprootSpendInfo(self.internal, [self.script_a])
        self.assertNotEqual(key_only.output_key, with_script.output_key)


class TestControlBlock(unittest.TestCase):
    def setUp(self):
        self.internal = PrivateKey(secret_exponent=1).get_public_key()

    def test_parity_bit(self):
        even = ControlBlock(self.internal)
        odd = ControlBlock(self.internal, is_odd=True)
        self.assertEqual(even.to_bytes()[0], 0xC0)
        self.assertEqual(odd.to_bytes()[0], 0xC1)
        self.assertNotEqual(even, odd)

    def test_from_bytes(self):
        merkle_path = b"\x11" * 32 + b"\x22" * 32
        control_block = ControlBlock(self.internal, merkle_path, is_odd=True)
        parsed = ControlBlock.from_bytes(control_block.to_bytes())
        self.assertEqual(parsed, control_block)
        self.assertTrue(parsed.is_odd)
        self.assertEqual(parsed.leaf_version, 0xC0)
        self.assertEqual(parsed.merkle_path, merkle_path)
        self.assertEqual(hash(parsed), hash(control_block))

    def test_invalid(self):
        with self.assertRaises(ValueError):
            ControlBlock(self.internal, b"\x11" * 31)
        with self.assertRaises(ValueError):
            ControlBlock.from_bytes(b"\xc0" + b"\x11" * 10)


if __name__ == "__main__":
    unittest.main()
