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

# Constants related to taproot
LEAF_VERSION_TAPSCRIPT = 0xC0
TAPROOT_LEAF_MASK = 0xFE
TAPROOT_CONTROL_BASE_SIZE = 33
TAPROOT_CONTROL_NODE_SIZE = 32
TAPROOT_CONTROL_MAX_NODE_COUNT = 128


# BIP-32
BIP32_PRIME = 0x80000000
UINT32_MAX = (1 << 32) - 1
BIP32_HARDENED_CHAR = "h"

