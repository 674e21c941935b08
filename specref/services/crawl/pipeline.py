from __future__ import annotations

import json
import os
import tempfile
from glob import glob
from typing import Any, Dict, List

from specref.models.specref import SpecRefRecord

from .base import EntryMap

Snapshot = Dict[str, Dict[str, Any]]


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def clear_snapshots(out_dir: str) -> List[str]:
    """Remove ``*.json`` snapshots left over from a previous run."""
    removed = []
    for path in sorted(glob(os.path.join(out_dir, "*.json"))):
        os.remove(path)
        removed.append(path)
    return removed


def build_snapshot(entries: EntryMap) -> Snapshot:
    """Render entries as the SpecRef mapping, in catalog order."""
    ordered = sorted(entries.values(), key=lambda e: e.sort_index)
    return {e.cross_ref_id: SpecRefRecord.from_entry(e).to_json_dict() for e in ordered}


def dumps_snapshot(snapshot: Snapshot) -> str:
    return json.dumps(snapshot, ensure_ascii=False, indent=2)


def reencode_snapshot(text: str) -> str:
    """Decode a snapshot, validate every record and encode it again."""
    decoded = json.loads(text)
    return dumps_snapshot(
        {key: SpecRefRecord.model_validate(value).to_json_dict() for key, value in decoded.items()}
    )


def write_json(snapshot: Snapshot, out_dir: str, filename: str) -> str:
    """Write the snapshot to ``out_dir/filename`` and return the path.

    The file is written next to its destination and renamed into place, so a
    reader never observes a partially written snapshot.
    """
    ensure_dir(out_dir)
    path = os.path.join(out_dir, filename)
    fd, tmp_path = tempfile.mkstemp(dir=out_dir, prefix=f".{filename}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(dumps_snapshot(snapshot))
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise
    return path
