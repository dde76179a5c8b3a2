"""
Inspected transaction data models.
"""

from __future__ import annotations

from dataclasses import dataclass

from itxcore.actions import Action


@dataclass
class Input:
    """
    A spending input resolved to the output it consumes.

    Coinbase inputs stay empty: zero value, empty script, no action.
    """

    value: int = 0
    locking_script: bytes = b""
    action: Action | None = None


@dataclass
class Output:
    # value and locking script live on the raw tx output
    action: Action | None = None


@dataclass(frozen=True)
class Rejection:
    code: int
    text: str = ""
