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

from psbtplan.ripemd160 import ripemd160
from psbtplan.script import Script
from psbtplan.utils import (
    encode_varint,
    get_tag_hashed_merkle_root,
    h_to_b,
    hash160,
    prepend_compact_size,
    tapbranch_tagged_hash,
    tapleaf_tagged_hash,
    tagged_hash,
)


class TestHashes(unittest.TestCase):
    def test_ripemd160_vectors(self):
        self.assertEqual(
            ripemd160(b"").hex(), "9c1185a5c5e9fc54612808977ee8f548b2258d31"
        )
        self.assertEqual(
            ripemd160(b"abc").hex(), "8eb208f7e05d987a9b044a8e98c6b087f15a0bfc"
        )
        self.assertEqual(
            ripemd160(b"message digest").hex(),
            "5d0689ef49d2fae572b881b123a85ffa21595f36",
        )

    def test_ripemd160_multiple_blocks(self):
        self.assertEqual(
            ripemd160(
                b"abcdbcdecdefdefgefghfghighijhijkijkljklmklmnlmnomnopnopq"
            ).hex(),
            "12a053384a9c0c88e405a06c27dcf49ada62eb2b",
        )

    def test_hash160_of_generator(self):
        pubkey = h_to_b(
            "0279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"
        )
        self.assertEqual(
            hash160(pubkey).hex(), "751e76e8199196d454941c45d1b3a323f1433bd6"
        )


class TestCompactSize(unittest.TestCase):
    def test_encode_varint(self):
        self.assertEqual(encode_varint(0x17), b"\x17")
        self.assertEqual(encode_varint(0xFC), b"\xfc")
        self.assertEqual(encode_varint(0xFD), b"\xfd\xfd\x00")
        self.assertEqual(encode_varint(0x10000), b"\xfe\x00\x00\x01\x00")

    def test_prepend_compact_size(self):
        self.assertEqual(prepend_compact_size(b"\xab" * 3), b"\x03\xab\xab\xab")


class TestTaggedHashes(unittest.TestCase):
    def setUp(self):
        self.script_a = Script(["OP_1"])
        self.script_b = Script(["OP_2"])
        self.script_c = Script(["OP_3"])

    def test_single_leaf_root_is_leaf_hash(self):
        self.assertEqual(
            get_tag_hashed_merkle_root([self.script_a]),
            tapleaf_tagged_hash(self.script_a),
        )

    def test_leaf_hash_commits_to_leaf_version(self):
        self.assertEqual(
            tapleaf_tagged_hash(self.script_a),
            tagged_hash(b"\xc0\x01\x51", "TapLeaf"),
        )

    def test_branch_is_order_independent(self):
        a = tapleaf_tagged_hash(self.script_a)
        b = tapleaf_tagged_hash(self.script_b)
        self.assertEqual(tapbranch_tagged_hash(a, b), tapbranch_tagged_hash(b, a))
        self.assertEqual(
            get_tag_hashed_merkle_root([self.script_a, self.script_b]),
            tapbranch_tagged_hash(a, b),
        )

    def test_nested_tree(self):
        a = tapleaf_tagged_hash(self.script_a)
        b = tapleaf_tagged_hash(self.script_b)
        c = tapleaf_tagged_hash(self.script_c)
        self.assertEqual(
            get_tag_hashed_merkle_root([[self.script_a, self.script_b], self.script_c]),
            tapbranch_tagged_hash(tapbranch_tagged_hash(a, b), c),
        )

    def test_empty_tree(self):
        self.assertEqual(get_tag_hashed_merkle_root(None), b"")
        self.assertEqual(get_tag_hashed_merkle_root([]), b"")

    def test_too_many_branches(self):
        with self.assertRaises(ValueError):
            get_tag_hashed_merkle_root([self.script_a, self.script_b, self.script_c])


if __name__ == "__main__":
    unittest.main()
