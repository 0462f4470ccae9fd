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

__version__ = "0.1.0"

from psbtplan.keys import PrivateKey, PublicKey

from psbtplan.script import Script

from psbtplan.bip32 import KeyOrigin

from psbtplan.taproot import ControlBlock, TaprootSpendInfo

from psbtplan.descriptor import (
    DescriptorPublicKey,
    SortedMulti,
    Miniscript,
    Bare,
    Pkh,
    Wpkh,
    Sh,
    Wsh,
    Tr,
)

from psbtplan.plan import Plan, update_psbt_input

from psbtplan.psbt import PSBTInput

__all__ = [
    'PrivateKey',
    'PublicKey',
    'Script',
    'KeyOrigin',
    'ControlBlock',
    'TaprootSpendInfo',
    'DescriptorPublicKey',
    'SortedMulti',
    'Miniscript',
    'Bare',
    'Pkh',
    'Wpkh',
    'Sh',
    'Wsh',
    'Tr',
    'Plan',
    'update_psbt_input',
    'PSBTInput',
]
