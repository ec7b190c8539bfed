from .persist import SnapshotError, load_progress, read_snapshot, save_progress  # noqa: F401
from .migrations import migrate_snapshot  # noqa: F401
