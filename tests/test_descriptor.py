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

from psbtplan.bip32 import KeyOrigin
from psbtplan.keys import PrivateKey
from psbtplan.script import Script
from psbtplan.descriptor import (
    Bare,
    DescriptorPublicKey,
    Miniscript,
    Pkh,
    Sh,
    SortedMulti,
    Tr,
    Wpkh,
    Wsh,
)
from psbtplan.utils import tapleaf_tagged_hash


G_HEX = "0279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"
G_HASH160 = "751e76e8199196d454941c45d1b3a323f1433bd6"


class TestDescriptorPublicKey(unittest.TestCase):
    def setUp(self):
        self.pub = PrivateKey(secret_exponent=1).get_public_key()

    def test_from_string_with_origin(self):
        key = DescriptorPublicKey.from_string("[d34db33f/84h/0h/0h]" + G_HEX)
        self.assertEqual(key.to_public_key(), self.pub)
        self.assertEqual(key.master_fingerprint(), bytes.fromhex("d34db33f"))
        self.assertEqual(
            key.full_derivation_paths(), [[0x80000054, 0x80000000, 0x80000000]]
        )
        self.assertFalse(key.is_multipath())

    def test_without_origin(self):
        key = DescriptorPublicKey(self.pub)
        self.assertEqual(key.master_fingerprint(), bytes.fromhex(G_HASH160[:8]))
        self.assertEqual(key.full_derivation_paths(), [[]])
        self.assertEqual(key.to_x_only_pubkey(), self.pub.to_x_only_bytes())

    def test_multipath(self):
        key = DescriptorPublicKey.from_string(
            "[d34db33f/48h/1h]" + G_HEX, derivation_paths=["0/7", "1/7"]
        )
        self.assertTrue(key.is_multipath())
        self.assertEqual(
            key.full_derivation_paths(),
            [[0x80000030, 0x80000001, 0, 7], [0x80000030, 0x80000001, 1, 7]],
        )


class TestDescriptorScripts(unittest.TestCase):
    def setUp(self):
        origin = KeyOrigin(bytes.fromhex("d34db33f"), [0x80000054])
        self.keys = [
            DescriptorPublicKey(
                PrivateKey(secret_exponent=n).get_public_key(), origin
            )
            for n in (3, 1, 2)
        ]
        self.g_key = self.keys[1]

    def test_pkh(self):
        self.assertEqual(
            Pkh(self.g_key).script_pubkey().to_hex(),
            "76a914" + G_HASH160 + "88ac",
        )

    def test_wpkh(self):
        self.assertEqual(Wpkh(self.g_key).script_pubkey().to_hex(), "0014" + G_HASH160)

    def test_sortedmulti_sorts_keys(self):
        multi = SortedMulti(2, self.keys)
        script = multi.encode().get_script()
        self.assertEqual(script[0], 2)
        self.assertEqual(script[1], G_HEX)
        self.assertEqual(script[1:4], sorted(script[1:4]))
        self.assertEqual(script[4:], [3, "OP_CHECKMULTISIG"])
        self.assertEqual(multi.encode().to_bytes()[0], 0x52)

    def test_invalid_sortedmulti(self):
        with self.assertRaises(ValueError):
            SortedMulti(4, self.keys)
        with self.assertRaises(ValueError):
            SortedMulti(0, self.keys)

    def test_wsh(self):
        multi = SortedMulti(2, self.keys)
        wsh = Wsh(multi)
        self.assertEqual(wsh.inner_script(), multi.encode())
        self.assertEqual(wsh.script_pubkey(), multi.encode().to_p2wsh_script_pub_key())
        self.assertEqual(len(wsh.script_pubkey().to_bytes()), 34)
        self.assertEqual(wsh.keys(), self.keys)

    def test_sh_inner_scripts(self):
        multi = SortedMulti(2, self.keys)
        self.assertEqual(Sh(multi).inner_script(), multi.encode())
        self.assertEqual(
            Sh(Wpkh(self.g_key)).inner_script(), Script(["OP_0", G_HASH160])
        )
        self.assertEqual(
            Sh(Wsh(multi)).inner_script(), multi.encode().to_p2wsh_script_pub_key()
        )
        self.assertEqual(
            Sh(multi).script_pubkey(), multi.encode().to_p2sh_script_pub_key()
        )
        self.assertEqual(Sh(Wpkh(self.g_key)).keys(), [self.g_key])

    def test_invalid_inner(self):
        with self.assertRaises(TypeError):
            Sh(Pkh(self.g_key))
        with self.assertRaises(TypeError):
            Wsh(Wpkh(self.g_key))

    def test_bare(self):
        script = Script([self.g_key.to_public_key().to_hex(), "OP_CHECKSIG"])
        bare = Bare(Miniscript(script, [self.g_key]))
        self.assertEqual(bare.script_pubkey(), script)
        self.assertEqual(bare.keys(), [self.g_key])

    def test_tr(self):
        leaf = Miniscript(
            Script([self.keys[0].to_public_key().to_x_only_hex(), "OP_CHECKSIG"]),
            [self.keys[0]],
        )
        tr = Tr(self.g_key, [leaf])
        info = tr.spend_info()
        self.assertIs(info, tr.spend_info())
        self.assertEqual(info.merkle_root, tapleaf_tagged_hash(leaf.encode()))
        self.assertEqual(
            tr.script_pubkey().to_bytes(), b"\x51\x20" + info.output_key
        )
        self.assertEqual(tr.keys(), [self.g_key, self.keys[0]])

    def test_tr_key_only(self):
        tr = Tr(self.g_key)
        self.assertIsNone(tr.spend_info().merkle_root)
        self.assertEqual(tr.keys(), [self.g_key])


if __name__ == "__main__":
    unittest.main()
