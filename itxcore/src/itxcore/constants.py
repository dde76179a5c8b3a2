"""
Bitcoin script and protocol constants.
"""

from __future__ import annotations

# Outpoint index reserved for coinbase inputs
COINBASE_INDEX = 0xFFFFFFFF

# Default input sequence (final)
SEQUENCE_FINAL = 0xFFFFFFFF

SATOSHIS_PER_COIN = 100_000_000

# Opcodes used by the script helpers and the action envelope
OP_FALSE = 0x00
OP_PUSHDATA1 = 0x4C
OP_PUSHDATA2 = 0x4D
OP_PUSHDATA4 = 0x4E
OP_1NEGATE = 0x4F
OP_1 = 0x51
OP_16 = 0x60
OP_RETURN = 0x6A
OP_DUP = 0x76
OP_EQUAL = 0x87
OP_EQUALVERIFY = 0x88
OP_HASH160 = 0xA9
OP_CHECKSIG = 0xAC

# Protocol identifiers carried in the action envelope
PROTOCOL_ID = b"TKN"
TEST_PROTOCOL_ID = b"test.TKN"
ENVELOPE_VERSION = 0

# Upper bound on counts read from untrusted data, so a corrupt count fails
# instead of allocating
MAX_MESSAGE_ITEMS = 1_000_000
