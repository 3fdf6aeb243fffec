from __future__ import annotations
import json
from typing import Any, Dict, List

from .errors import CorruptionError, InvalidArgumentError

EMPTY_DATABASE = "[]"


def dump_records(records: List[Dict[str, Any]]) -> str:
    # Compact form, key order preserved
    try:
        return json.dumps(records, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError(f"Value is not JSON-serializable: {exc}") from exc


def parse_records(text: str, path: str = "<memory>") -> List[Dict[str, Any]]:
    """
    Decode the whole database file and check its shape:
    a JSON array of {"name": str, "index": int, "keys": object}.
    """
    try:
        records = json.loads(text)
    except ValueError as exc:
        raise CorruptionError(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(records, list):
        raise CorruptionError(f"{path} must hold a JSON array, got {type(records).__name__}")
    for pos, rec in enumerate(records):
        if not isinstance(rec, dict):
            raise CorruptionError(f"{path}: record #{pos} is not an object")
        if not isinstance(rec.get("name"), str):
            raise CorruptionError(f"{path}: record #{pos} has no string 'name'")
        if not isinstance(rec.get("keys"), dict):
            raise CorruptionError(f"{path}: record '{rec['name']}' has no object 'keys'")
    return records


def find_record(records: List[Dict[str, Any]], name: str) -> Dict[str, Any] | None:
    # Collection names are case-insensitive, hand-edited files included
    name = name.lower()
    for rec in records:
        if rec["name"].lower() == name:
            return rec
    return None
