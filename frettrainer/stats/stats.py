from __future__ import annotations

"""Text summaries of quiz results and mastery progress."""

from typing import List

from ..quiz.models import QuizResult
from ..quiz.progressive import STRING_NAMES, STRING_PROGRESSION, ProgressiveMasteryTracker


def format_result(result: QuizResult) -> str:
    """Return a human-readable summary of a finished quiz."""
    lines = [
        f"Total: {result.correct_answers}/{result.total_questions} correct ({result.accuracy}%)",
        f"Attempts: {result.total_attempts} (avg {result.average_attempts:.2f} per correct answer)",
        f"Hints used: {result.hints_used}",
    ]
    return "\n".join(lines)


def format_summary(tracker: ProgressiveMasteryTracker) -> str:
    """Per-string mastery overview, learning order first."""
    lines: List[str] = []
    for s in STRING_PROGRESSION:
        if not tracker.is_string_unlocked(s):
            lines.append(f"String {s} ({STRING_NAMES[s]}): locked")
            continue
        st = tracker.string_overall_stats(s)
        status = "mastered" if tracker.is_string_mastered(s) else "learning"
        lines.append(
            f"String {s} ({STRING_NAMES[s]}): {status}, {st.unlocked_notes}/{st.total_notes} frets, "
            f"{st.total_correct}/{st.total_attempts} correct ({st.overall_accuracy:.0f}%)"
        )
    if tracker.all_strings_complete:
        lines.append("All strings complete.")
    return "\n".join(lines)


def format_string_detail(tracker: ProgressiveMasteryTracker, string: int) -> str:
    lines = [f"String {string} ({STRING_NAMES[string]}):"]
    for ns in tracker.string_note_stats(string):
        if not ns.is_unlocked:
            continue
        avg = f"{ns.average_time:.1f}s" if ns.average_time is not None else "-"
        mark = "*" if ns.meets_unlock_criteria else " "
        lines.append(f" {mark} fret {ns.fret:>2} {ns.pitch_class:<2}  {ns.correct}/{ns.attempts}  {ns.accuracy:5.1f}%  {avg}")
    return "\n".join(lines)
