"""Test vectors shared across the padsync test suite."""

# Passphrases
PASSPHRASE = "correcthorsebattery"
OTHER_PASSPHRASE = "batterystaplehorse"

# Fixed 16-byte salts
SALT_HEX = "000102030405060708090a0b0c0d0e0f"
OTHER_SALT_HEX = "f0e0d0c0b0a090807060504030201000"

# Payloads covering edge cases
TEST_PAYLOADS = {
    "empty": b"",
    "single_byte": b"X",
    "json": b'{"kind": "hello", "nonce": "abc", "time": 1}',
    "unicode": "Café résumé naïve 你好".encode("utf-8"),
    "binary": bytes(range(256)),
    "large": b"A" * 65536,
}
