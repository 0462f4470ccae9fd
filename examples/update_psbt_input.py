#!/usr/bin/env python3

# Example: Adding signing metadata of a spending plan to PSBT inputs

from psbtplan.keys import PrivateKey
from psbtplan.script import Script
from psbtplan.descriptor import DescriptorPublicKey, Miniscript, Wsh, Tr
from psbtplan.plan import (
    Plan,
    EcdsaSigPk,
    SchnorrSigPk,
    KeySpend,
    ScriptSpend,
    TapScript,
    TapControlBlock,
)
from psbtplan.psbt import PSBTInput


def main():
    # keys as they would come out of a wallet's descriptors
    alice = DescriptorPublicKey.from_string(
        '[d34db33f/84h/1h/0h]' + PrivateKey(secret_exponent=11).get_public_key().to_hex(),
        ['0/0'],
    )
    bob = DescriptorPublicKey.from_string(
        '[c0ffee00/84h/1h/0h]' + PrivateKey(secret_exponent=12).get_public_key().to_hex(),
        ['0/0'],
    )

    # P2WSH: alice and bob must both sign
    witness_script = Script([
        alice.to_public_key().to_hex(), 'OP_CHECKSIGVERIFY',
        bob.to_public_key().to_hex(), 'OP_CHECKSIG',
    ])
    wsh = Wsh(Miniscript(witness_script, [alice, bob]))
    plan = Plan(wsh, [EcdsaSigPk(bob), EcdsaSigPk(alice)])

    psbt_input = PSBTInput()
    plan.update_psbt_input(psbt_input)
    print("P2WSH scriptPubKey:", wsh.script_pubkey().to_hex())
    print("P2WSH input map:", psbt_input.to_hex())

    # P2TR: alice owns the internal key, bob can spend through a leaf
    leaf = Miniscript(Script([bob.to_public_key().to_x_only_hex(), 'OP_CHECKSIG']), [bob])
    tr = Tr(alice, [leaf])
    print("\nP2TR scriptPubKey:", tr.script_pubkey().to_hex())

    key_spend = Plan(tr, [SchnorrSigPk(alice, KeySpend(tr.spend_info().merkle_root))])
    psbt_input = PSBTInput()
    key_spend.update_psbt_input(psbt_input)
    print("P2TR key-spend input map:", psbt_input.to_hex())

    info = tr.spend_info()
    leaf_script = leaf.encode()
    script_spend = Plan(tr, [
        TapScript(leaf_script),
        TapControlBlock(info.control_block(leaf_script)),
        SchnorrSigPk(bob, ScriptSpend(info.leaf_hash(leaf_script))),
    ])
    psbt_input = PSBTInput()
    script_spend.update_psbt_input(psbt_input)
    print("P2TR script-spend input map:", psbt_input.to_hex())


if __name__ == "__main__":
    main()
