"""Common cryptographic utilities.
"""

import base64
import binascii
import struct

from cryptography.hazmat.primitives import hashes, hmac

CODE_ALPHABET = "23456789BCDFGHJKMNPQRTVWXY"
CODE_LENGTH = 5


class CryptoUtils:
    """Utility class for cryptographic operations."""

    @staticmethod
    def decode_shared_secret(shared_secret: str) -> bytes:
        """Decode a base64 shared secret, raising ValueError when malformed."""
        try:
            secret = base64.b64decode(shared_secret, validate=True)
        except (binascii.Error, ValueError) as err:
            msg = "shared secret is not valid base64"
            raise ValueError(msg) from err
        if not secret:
            msg = "shared secret is empty"
            raise ValueError(msg)
        return secret

    @staticmethod
    def generate_auth_code(
        shared_secret: str, timestamp: float, period: int = 30
    ) -> str:
        """Generate a Steam Guard code for the given wall-clock timestamp."""
        secret = CryptoUtils.decode_shared_secret(shared_secret)
        time_window = int(timestamp // period)

        mac = hmac.HMAC(secret, hashes.SHA1())
        mac.update(struct.pack(">Q", time_window))
        digest = mac.finalize()

        offset = digest[19] & 0x0F
        value = struct.unpack(">I", digest[offset : offset + 4])[0] & 0x7FFFFFFF

        code = ""
        for _ in range(CODE_LENGTH):
            code += CODE_ALPHABET[value % len(CODE_ALPHABET)]
            value //= len(CODE_ALPHABET)
        return code
