"""Deterministic symbol identity.

A symbol's uid is derived from what it is, not from where or when it was
indexed: re-indexing identical code yields the same uid, and any signature
change yields a new one.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

from cigraph.config.constants import KEY_SEPARATOR

_NO_SIGNATURE = "nosig"


def _digest(raw: str) -> str:
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:16]


def compute_signature_hash(signature: str | None) -> str | None:
    """Stable digest of a canonical signature string, or None when absent."""
    if not signature:
        return None
    return _digest(signature)


def compute_contract_hash(
    contract: Any = None,
    constraints: Any = None,
    allowable_values: Any = None,
) -> str:
    """Digest of a callable's structured behavior metadata.

    Key order in the inputs does not affect the result.
    """
    payload = {
        "contract": contract,
        "constraints": constraints,
        "allowable_values": allowable_values,
    }
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return _digest(canonical)


def make_symbol_uid(language: str, qualified_name: str, signature_hash: str | None) -> str:
    """``language::qualified_name::signature_hash`` (``nosig`` without a signature)."""
    if not isinstance(language, str) or not language:
        raise ValueError("language is required")
    if not isinstance(qualified_name, str) or not qualified_name:
        raise ValueError("qualified_name is required")
    sig = signature_hash if isinstance(signature_hash, str) and signature_hash else _NO_SIGNATURE
    return KEY_SEPARATOR.join((language, qualified_name, sig))
