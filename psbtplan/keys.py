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

from typing import Optional

from ecdsa import SigningKey, VerifyingKey, SECP256k1  # type: ignore
from sympy.ntheory import sqrt_mod  # type: ignore

from psbtplan.utils import Secp256k1Params, b_to_h, h_to_b, h_to_i, hash160


class PrivateKey:
    """Represents an ECDSA private key.

    Only used to obtain deterministic public keys; signing is left to the
    signers that consume the populated PSBT.

    Attributes
    ----------
    key : SigningKey
        the ecdsa signing key

    Methods
    -------
    from_bytes()
        creates an object from raw 32 bytes
    to_bytes()
        returns the key's raw bytes
    get_public_key()
        returns the corresponding PublicKey object
    """

    def __init__(
        self, secret_exponent: Optional[int] = None, b: Optional[bytes] = None
    ) -> None:
        """With no parameters a random key is created

        Parameters
        ----------
        secret_exponent : int, optional
            used to create a specific key deterministically (default None)
        b : bytes, optional
            used to create a key from raw bytes
        """

        if b:
            self._from_bytes(b)
        elif secret_exponent:
            self.key = SigningKey.from_secret_exponent(secret_exponent, curve=SECP256k1)
        else:
            self.key = SigningKey.generate(curve=SECP256k1)

    def to_bytes(self) -> bytes:
        """Returns key's bytes"""

        return self.key.to_string()

    @classmethod
    def from_bytes(cls, b: bytes) -> "PrivateKey":
        """Creates a key directly from 32 raw bytes"""

        return cls(b=b)

    def _from_bytes(self, b: bytes) -> None:
        if len(b) != 32:
            raise ValueError("Invalid key length: must be exactly 32 bytes.")
        self.key = SigningKey.from_string(b, curve=SECP256k1)

    def get_public_key(self) -> "PublicKey":
        """Returns the corresponding PublicKey"""

        verifying_key = b_to_h(self.key.get_verifying_key().to_string())
        return PublicKey("04" + verifying_key)


class PublicKey:
    """Represents an ECDSA public key.

    Attributes
    ----------
    key : VerifyingKey
        the ecdsa verifying key (x, y coordinates of the ECDSA curve)

    Methods
    -------
    from_hex(hex_str)
        creates an object from a hex string in SEC or x-only format (classmethod)
    to_hex(compressed=True)
        returns the key as hex string (in SEC format - compressed by default)
    to_sec_bytes(compressed=True)
        returns the key as bytes in SEC format
    to_x_only_hex()
        returns the x coordinate only as hex string (needed for taproot)
    to_x_only_bytes()
        returns the x coordinate only as bytes (needed for taproot)
    is_y_even()
        returns true if y coordinate is even
    to_bytes()
        returns the key's raw 64 bytes
    to_hash160()
        returns the hash160 hex string of the public key
    """

    def __init__(self, hex_str: str) -> None:
        """
        Parameters
        ----------
        hex_str : str
            the public key in hex string; SEC format (33 or 65 bytes) or
            x-only (32 bytes, even y is assumed as in BIP-340)

        Raises
        ------
        TypeError
            If first byte of public key (corresponding to SEC format) is
            invalid.
        ValueError
            If the key has an invalid length or is not on the curve
        """
        hex_str = hex_str.strip()
        if hex_str.lower().startswith("0x"):
            hex_str = hex_str[2:]

        hex_bytes = h_to_b(hex_str)

        if len(hex_bytes) == 65:
            # uncompressed - SEC format: 0x04 + x + y coordinates
            if hex_bytes[0] != 0x04:
                raise TypeError("Invalid SEC uncompressed format")
            self.key = VerifyingKey.from_string(hex_bytes[1:], curve=SECP256k1)
        elif len(hex_bytes) in (32, 33):
            if len(hex_bytes) == 32:
                # x-only keys always refer to the point with the even y
                prefix = 0x02
                x_coord = h_to_i(hex_str)
            else:
                prefix = hex_bytes[0]
                x_coord = h_to_i(hex_str[2:])
                if prefix not in (0x02, 0x03):
                    raise TypeError("Invalid SEC compressed format")

            # y = modulo_square_root( (x**3 + 7) mod p ) -- there will be 2 y values
            y_values = sqrt_mod(
                (x_coord**3 + 7) % Secp256k1Params._p, Secp256k1Params._p, True
            )
            if not y_values:
                raise ValueError("Public key is not on the secp256k1 curve")

            even_y = [y for y in y_values if y % 2 == 0][0]  # type: ignore
            y_coord = even_y if prefix == 0x02 else Secp256k1Params._p - even_y

            uncompressed = h_to_b(f"{x_coord:064x}{y_coord:064x}")
            self.key = VerifyingKey.from_string(uncompressed, curve=SECP256k1)
        else:
            raise ValueError(f"Invalid public key length: {len(hex_bytes)} bytes")

    @classmethod
    def from_hex(cls, hex_str: str) -> "PublicKey":
        """Creates a public key from a hex string (SEC or x-only format)"""

        return cls(hex_str)

    def to_bytes(self) -> bytes:
        """Returns key's bytes"""

        return self.key.to_string()

    def to_hex(self, compressed: bool = True) -> str:
        """Returns public key as a hex string (SEC format - compressed by
        default)"""

        key_hex = b_to_h(self.key.to_string())

        if compressed:
            # check if y is even or odd (02 even, 03 odd)
            if self.is_y_even():
                return "02" + key_hex[:64]
            return "03" + key_hex[:64]

        # uncompressed starts with 04
        return "04" + key_hex

    def to_sec_bytes(self, compressed: bool = True) -> bytes:
        """Returns public key in SEC format bytes (compressed by default)"""

        return h_to_b(self.to_hex(compressed))

    def to_x_only_hex(self) -> str:
        """Returns the x coordinate of the public key as hex string."""

        return self.key.to_string().hex()[:64]

    def to_x_only_bytes(self) -> bytes:
        """Returns the x coordinate of the public key as 32 bytes."""

        return self.key.to_string()[:32]

    def is_y_even(self) -> bool:
        """Returns True if the y coordinate of the public key is even and
        False otherwise."""

        return self.key.to_string()[-1] % 2 == 0

    def _to_hash160(self, compressed: bool = True) -> bytes:
        """Returns the RIPEMD( SHA256( ) ) of the public key in bytes"""

        return hash160(self.to_sec_bytes(compressed))

    def to_hash160(self, compressed: bool = True) -> str:
        """Returns the RIPEMD( SHA256( ) ) of the public key in hex"""

        return b_to_h(self._to_hash160(compressed))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PublicKey):
            return False
        return self.to_bytes() == other.to_bytes()

    def __hash__(self) -> int:
        return hash(self.to_bytes())

    def __repr__(self) -> str:
        return f"PublicKey({self.to_hex()})"
