import math
import unittest

from frettrainer.analytics import AnalyticsConfig, compute_metrics, mastery_frame, string_summary
from frettrainer.quiz.models import QuizResult
from frettrainer.quiz.progressive import ProgressiveMasteryTracker
from frettrainer.stats.stats import format_result, format_string_detail, format_summary


def practiced_tracker() -> ProgressiveMasteryTracker:
    t = ProgressiveMasteryTracker()
    for _ in range(3):
        t.record_attempt(6, 0, True, 1.0)
    t.record_attempt(6, 1, False, 2.0)
    return t


class AnalyticsTests(unittest.TestCase):
    def test_mastery_frame_shape(self) -> None:
        df = mastery_frame(ProgressiveMasteryTracker())
        self.assertEqual(len(df), 72)
        self.assertEqual(int(df.iloc[0]["string"]), 6)
        self.assertEqual(df.iloc[0]["pitch_class"], "E")
        self.assertEqual(int(df["unlocked"].sum()), 1)

    def test_compute_metrics(self) -> None:
        df = compute_metrics(mastery_frame(practiced_tracker()), AnalyticsConfig(alpha=0.5, time_ref_s=3.0))
        first = df.iloc[0]
        self.assertAlmostEqual(first["acc"], 1.0)
        self.assertAlmostEqual(first["avg_time_s"], 1.0)
        self.assertAlmostEqual(first["mark"], math.exp(-0.5 / 3.0))
        second = df.iloc[1]
        self.assertAlmostEqual(second["acc"], 0.0)
        self.assertAlmostEqual(second["mark"], 0.0)
        untouched = df.iloc[2]
        self.assertTrue(math.isnan(untouched["avg_time_s"]))
        self.assertEqual(untouched["time_factor"], 0.0)

    def test_string_summary(self) -> None:
        summary = string_summary(compute_metrics(mastery_frame(practiced_tracker())))
        self.assertEqual(len(summary), 1)
        row = summary.iloc[0]
        self.assertEqual(int(row["string"]), 6)
        self.assertEqual(int(row["unlocked_frets"]), 2)
        self.assertEqual(int(row["attempts"]), 4)
        self.assertAlmostEqual(row["accuracy"], 75.0)


class StatsFormattingTests(unittest.TestCase):
    def test_format_result(self) -> None:
        text = format_result(QuizResult(2, 1, 1, 4, 50, 4.0))
        self.assertEqual(
            text,
            "Total: 1/2 correct (50%)\nAttempts: 4 (avg 4.00 per correct answer)\nHints used: 1",
        )

    def test_format_summary_and_detail(self) -> None:
        t = practiced_tracker()
        summary = format_summary(t)
        self.assertIn("String 6 (Low E): learning, 2/12 frets, 3/4 correct (75%)", summary)
        self.assertIn("String 1 (High E): locked", summary)
        detail = format_string_detail(t, 6).splitlines()
        self.assertEqual(detail[0], "String 6 (Low E):")
        self.assertEqual(len(detail), 3)
        self.assertTrue(detail[1].startswith(" * fret  0 E"))


if __name__ == "__main__":
    unittest.main()
