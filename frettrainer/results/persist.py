from __future__ import annotations

"""Durable JSON persistence for progressive mastery.

The file holds one flat tracker snapshot (see results.schema). Older files
are upgraded in place on first load; the previous text is kept once as
`<name>.backup-<timestamp><suffix>` next to it.
"""

import json
import random
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from ..config.settings import ProgressiveConfig
from ..quiz.progressive import ProgressiveMasteryTracker
from ..app.explain import trace as xtrace
from .migrations import migrate_snapshot, needs_migration
from .schema import ProgressSnapshot


class SnapshotError(ValueError):
    """A progress file exists but cannot be read as a snapshot."""


def _backup(p: Path, raw_text: str) -> Path:
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    backup = p.with_name(f"{p.stem}.backup-{stamp}{p.suffix}")
    backup.write_text(raw_text, encoding="utf-8")
    return backup


def _write(p: Path, data: Dict[str, Any]) -> None:
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def save_progress(path: str, tracker: ProgressiveMasteryTracker) -> None:
    """Write the tracker snapshot as JSON."""
    _write(Path(path), tracker.to_snapshot())
    xtrace("progress_saved", {"path": str(path)})


def read_snapshot(path: str) -> Optional[Dict[str, Any]]:
    """Load, upgrade and validate a snapshot. Returns None if the file is missing.

    Raises:
        SnapshotError: if the file is not valid JSON or fails validation.
    """
    p = Path(path)
    if not p.exists():
        return None
    raw_text = p.read_text(encoding="utf-8")
    try:
        data = json.loads(raw_text)
    except json.JSONDecodeError as e:
        raise SnapshotError(f"{p}: not valid JSON ({e})") from e
    if not isinstance(data, dict):
        raise SnapshotError(f"{p}: snapshot must be a JSON object")

    upgraded = needs_migration(data)
    if upgraded:
        data = migrate_snapshot(data)

    try:
        snap = ProgressSnapshot.model_validate(data)
    except ValidationError as e:
        raise SnapshotError(f"{p}: invalid snapshot: {e}") from e

    out = snap.model_dump(by_alias=True)
    if upgraded:
        backup = _backup(p, raw_text)
        _write(p, out)
        print(f"[INFO] Upgraded {p} to schema {out['schema']}; previous file kept at {backup.name}", file=sys.stderr)
        xtrace("progress_migrated", {"path": str(p), "backup": backup.name})
    return out


def load_progress(
    path: str,
    config: Optional[ProgressiveConfig] = None,
    rng: Optional[random.Random] = None,
    clock: Optional[Callable[[], float]] = None,
) -> ProgressiveMasteryTracker:
    """Return the tracker stored at `path`, or a fresh one if there is no file."""
    data = read_snapshot(path)
    if data is None:
        return ProgressiveMasteryTracker(config, rng=rng, clock=clock)
    return ProgressiveMasteryTracker.from_snapshot(data, rng=rng, clock=clock)
