import json
import tempfile
import unittest
from contextlib import redirect_stderr
from io import StringIO
from pathlib import Path

from frettrainer.config.settings import ProgressiveConfig
from frettrainer.quiz.progressive import ProgressiveMasteryTracker
from frettrainer.results.migrations import migrate_snapshot, needs_migration
from frettrainer.results.persist import SnapshotError, load_progress, read_snapshot, save_progress


LEGACY = {
    "config": {"accuracyThreshold": 90, "nextNoteDelay": 1000, "someOldOption": True},
    "performance": {
        "0": {"attempts": 4, "correct": 4, "answerTimes": [1.0, 1.5], "lastAttemptTime": 10},
        "1": {"attempts": 2, "correct": 1, "answerTimes": [2.0], "lastAttemptTime": 20},
    },
    "unlockedFrets": 2,
}


class MigrationTests(unittest.TestCase):
    def test_legacy_ledger_moves_to_low_e(self) -> None:
        self.assertTrue(needs_migration(LEGACY))
        out = migrate_snapshot(LEGACY)
        self.assertEqual(out["schema"], 2)
        self.assertEqual(out["config"], {"accuracy_threshold": 90, "next_note_delay_ms": 1000})
        self.assertEqual(out["performance"]["6"]["0"]["answer_times"], [1.0, 1.5])
        self.assertEqual(out["unlocked_frets_per_string"], {"6": 2})
        self.assertEqual(out["current_string_index"], 0)

    def test_current_schema_is_untouched(self) -> None:
        snap = ProgressiveMasteryTracker().to_snapshot()
        self.assertFalse(needs_migration(snap))
        self.assertIs(migrate_snapshot(snap), snap)


class PersistTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)
        self.path = self.dir / "progress.json"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_missing_file_gives_fresh_tracker(self) -> None:
        cfg = ProgressiveConfig(min_attempts_to_unlock=5)
        self.assertIsNone(read_snapshot(str(self.path)))
        tracker = load_progress(str(self.path), cfg)
        self.assertEqual(tracker.current_string, 6)
        self.assertEqual(tracker.unlocked_frets, 1)
        self.assertEqual(tracker.config.min_attempts_to_unlock, 5)

    def test_save_and_load(self) -> None:
        tracker = ProgressiveMasteryTracker(clock=lambda: 99.0)
        for _ in range(3):
            tracker.record_attempt(6, 0, True, 1.0)
        save_progress(str(self.path), tracker)
        loaded = load_progress(str(self.path))
        self.assertEqual(loaded.to_snapshot(), tracker.to_snapshot())
        self.assertEqual(loaded.unlocked_frets, 2)

    def test_legacy_file_is_upgraded_with_backup(self) -> None:
        self.path.write_text(json.dumps(LEGACY), encoding="utf-8")
        err = StringIO()
        with redirect_stderr(err):
            tracker = load_progress(str(self.path))
        self.assertIn("[INFO] Upgraded", err.getvalue())
        self.assertEqual(tracker.performance_data(6, 0).attempts, 4)
        self.assertEqual(tracker.performance_data(6, 1).answer_times, [2.0])
        self.assertEqual(tracker.unlocked_frets, 2)
        self.assertEqual(tracker.config.accuracy_threshold, 90)

        backups = list(self.dir.glob("progress.backup-*.json"))
        self.assertEqual(len(backups), 1)
        self.assertEqual(json.loads(backups[0].read_text(encoding="utf-8")), LEGACY)
        rewritten = json.loads(self.path.read_text(encoding="utf-8"))
        self.assertEqual(rewritten["schema"], 2)

        err = StringIO()
        with redirect_stderr(err):
            load_progress(str(self.path))
        self.assertEqual(err.getvalue(), "")
        self.assertEqual(len(list(self.dir.glob("progress.backup-*.json"))), 1)

    def test_invalid_json(self) -> None:
        self.path.write_text("{not json", encoding="utf-8")
        with self.assertRaises(SnapshotError):
            load_progress(str(self.path))

    def test_invalid_snapshot(self) -> None:
        snap = ProgressiveMasteryTracker().to_snapshot()
        snap["performance"]["6"]["0"] = {"attempts": 1, "correct": 2}
        self.path.write_text(json.dumps(snap), encoding="utf-8")
        with self.assertRaises(SnapshotError):
            load_progress(str(self.path))

    def test_unknown_future_schema(self) -> None:
        self.path.write_text(json.dumps({"schema": 3}), encoding="utf-8")
        with self.assertRaises(SnapshotError):
            read_snapshot(str(self.path))


if __name__ == "__main__":
    unittest.main()
