"""
Protocol envelope codec.

An action is carried in an unspendable output as a sequence of pushes:

    OP_FALSE OP_RETURN <protocol id> <version> <action code> <payload>

The protocol id distinguishes production (TKN) from test (test.TKN)
networks, so a test action is never recognized on mainnet and vice versa.
The payload is the action's compact JSON.
"""

from __future__ import annotations

from pydantic import ValidationError

from itxcore.actions import ACTIONS_BY_CODE, Action
from itxcore.constants import (
    ENVELOPE_VERSION,
    OP_FALSE,
    OP_RETURN,
    PROTOCOL_ID,
    TEST_PROTOCOL_ID,
)
from itxcore.script import ScriptError, parse_pushes, push_data


class ProtocolError(Exception):
    """Raised when a script does not carry a recognized action."""

    pass


def protocol_id(is_test: bool) -> bytes:
    return TEST_PROTOCOL_ID if is_test else PROTOCOL_ID


def serialize(action: Action, is_test: bool) -> bytes:
    """Build the locking script carrying `action`."""
    if not action.CODE:
        raise ProtocolError(f"{type(action).__name__} has no action code")

    payload = action.model_dump_json().encode("utf-8")
    return (
        bytes([OP_FALSE, OP_RETURN])
        + push_data(protocol_id(is_test))
        + push_data(bytes([ENVELOPE_VERSION]))
        + push_data(action.CODE.encode("ascii"))
        + push_data(payload)
    )


def deserialize(locking_script: bytes, is_test: bool) -> Action:
    """
    Decode the action carried by a locking script.

    Args:
        locking_script: Output locking script
        is_test: Whether to expect the test network protocol id

    Returns:
        The decoded action

    Raises:
        ProtocolError: If the script does not carry a recognized action
    """
    if len(locking_script) < 2 or locking_script[0] != OP_FALSE or locking_script[1] != OP_RETURN:
        raise ProtocolError("Not an OP_FALSE OP_RETURN script")

    try:
        items = parse_pushes(locking_script[2:])
    except ScriptError as e:
        raise ProtocolError(f"Malformed envelope: {e}") from e

    if len(items) != 4 or any(data is None for _, data in items):
        raise ProtocolError("Envelope must be exactly four pushes")

    pid, version, code, payload = (data or b"" for _, data in items)

    if pid != protocol_id(is_test):
        raise ProtocolError(f"Unrecognized protocol id {pid!r}")

    if version != bytes([ENVELOPE_VERSION]):
        raise ProtocolError(f"Unsupported envelope version {version.hex()}")

    try:
        action_type = ACTIONS_BY_CODE[code.decode("ascii")]
    except (KeyError, UnicodeDecodeError) as e:
        raise ProtocolError(f"Unknown action code {code!r}") from e

    try:
        return action_type.model_validate_json(payload)
    except ValidationError as e:
        raise ProtocolError(f"Invalid {action_type.CODE} payload: {e}") from e
