import random
import unittest
from typing import List

from frettrainer.app.flow_controller import FlowEvent, QuizFlowController
from frettrainer.config.settings import FlowConfig, QuizConfig
from frettrainer.util.scheduler import CooperativeScheduler
from frettrainer.zones.zone import HighlightZone
from tests.helpers import note_at


def make_controller(total: int = 1, max_attempts: int = 3, **flow) -> tuple:
    scheduler = CooperativeScheduler()
    cfg = FlowConfig(quiz=QuizConfig(max_attempts=max_attempts, total_questions=total), **flow)
    controller = QuizFlowController(cfg, scheduler=scheduler, rng=random.Random(7))
    return controller, scheduler


class EndToEndTests(unittest.TestCase):
    def test_single_question_quiz(self) -> None:
        controller, _ = make_controller(total=1, max_attempts=3)
        events: List[FlowEvent] = []
        controller.on("quiz_completed", events.append)

        self.assertTrue(controller.start(HighlightZone("c", [(1, 8)])))
        q = controller.current_question
        self.assertIsNotNone(q)
        self.assertEqual(q.target_pitch_class, "C")
        self.assertEqual(q.question_text, "Find C")

        wrong = controller.submit_answer(note_at(1, 10))
        self.assertFalse(wrong.is_correct)
        self.assertEqual(controller.quiz_state, "active")
        self.assertEqual(controller.feedback.type_at("s1f10"), "incorrect")

        right = controller.submit_answer(note_at(1, 8))
        self.assertTrue(right.is_correct)
        self.assertEqual(controller.quiz_state, "complete")

        result = controller.get_result()
        self.assertEqual(
            (result.total_questions, result.correct_answers, result.hints_used,
             result.total_attempts, result.accuracy, result.average_attempts),
            (1, 1, 0, 2, 100, 2.0),
        )
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0].result, result)
        self.assertFalse(controller.is_auto_advance_pending)

    def test_empty_zone_does_not_start(self) -> None:
        controller, _ = make_controller()
        self.assertFalse(controller.start(HighlightZone()))
        self.assertEqual(controller.quiz_state, "idle")


class AutoAdvanceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.controller, self.scheduler = make_controller(total=3)
        self.zone = HighlightZone("two", [(1, 8), (1, 10)])
        self.controller.start(self.zone)
        self.ready: List[FlowEvent] = []
        self.controller.on("question_ready", self.ready.append)

    def answer_correctly(self) -> None:
        q = self.controller.current_question
        self.controller.submit_answer(q.target_note)

    def test_advance_after_delay(self) -> None:
        first = self.controller.current_question
        self.answer_correctly()
        self.assertTrue(self.controller.is_auto_advance_pending)
        self.assertEqual(self.controller.current_question, first)
        self.assertEqual(self.controller.auto_advance_remaining, 1000)
        self.scheduler.advance(999)
        self.assertEqual(self.ready, [])
        self.scheduler.advance(1)
        self.assertEqual(len(self.ready), 1)
        self.assertEqual(self.controller.current_question.question_number, 2)
        self.assertNotEqual(self.controller.current_question.target_pitch_class, first.target_pitch_class)
        self.assertTrue(self.controller.is_running)
        self.assertFalse(self.controller.feedback.has_feedback)

    def test_pause_keeps_remaining_delay(self) -> None:
        first = self.controller.current_question
        self.answer_correctly()
        self.scheduler.advance(400)
        self.assertTrue(self.controller.pause())
        self.assertEqual(self.controller.auto_advance_remaining, 600)
        self.assertEqual(self.controller.current_question, first)
        self.scheduler.advance(5000)
        self.assertEqual(self.ready, [])
        self.assertEqual(self.controller.paused_duration, 5000)

        self.assertTrue(self.controller.resume())
        self.assertTrue(self.controller.is_auto_advance_pending)
        self.scheduler.advance(599)
        self.assertEqual(self.ready, [])
        self.scheduler.advance(1)
        self.assertEqual(len(self.ready), 1)
        self.assertTrue(self.controller.is_running)

    def test_submit_while_paused_is_ignored(self) -> None:
        self.controller.pause()
        self.assertIsNone(self.controller.submit_answer(note_at(1, 8)))
        self.assertEqual(self.controller.state.total_attempts, 0)
        self.assertFalse(self.controller.pause())
        self.controller.resume()
        self.assertFalse(self.controller.resume())

    def test_submit_while_pending_advances_immediately(self) -> None:
        self.answer_correctly()
        self.assertIsNone(self.controller.submit_answer(note_at(1, 8)))
        self.assertEqual(len(self.ready), 1)
        self.assertTrue(self.controller.is_running)
        self.assertEqual(self.controller.state.total_attempts, 1)
        self.scheduler.advance(2000)
        self.assertEqual(len(self.ready), 1)

    def test_cancel_auto_advance(self) -> None:
        cancelled: List[FlowEvent] = []
        self.controller.on("auto_advance_cancelled", cancelled.append)
        self.answer_correctly()
        self.assertTrue(self.controller.cancel_auto_advance())
        self.assertFalse(self.controller.cancel_auto_advance())
        self.scheduler.advance(2000)
        self.assertEqual(self.ready, [])
        self.assertEqual(len(cancelled), 1)
        self.assertTrue(self.controller.advance_to_next_question())
        self.assertEqual(len(self.ready), 1)

    def test_progress_is_clamped(self) -> None:
        for _ in range(3):
            self.answer_correctly()
            self.scheduler.advance(1000)
        self.assertEqual(self.controller.quiz_state, "complete")
        progress = self.controller.get_progress()
        self.assertEqual(progress.current_question, 3)
        self.assertEqual(progress.display, "Question 3 of 3")
        self.assertEqual(progress.percentage, 100)
        self.assertEqual(self.controller.get_score().display, "3/3")


class HintTests(unittest.TestCase):
    def test_hint_after_max_attempts(self) -> None:
        controller, scheduler = make_controller(total=2, max_attempts=1)
        controller.start(HighlightZone("two", [(1, 8), (1, 10)]))
        q = controller.current_question
        other = note_at(1, 10) if q.target_pitch_class == "C" else note_at(1, 8)
        controller.submit_answer(other)
        self.assertEqual(controller.quiz_state, "hint")
        self.assertEqual(controller.feedback.type_at(q.target_note.position_id), "hint")
        self.assertIsNone(controller.submit_answer(q.target_note))

        self.assertTrue(controller.acknowledge_hint())
        self.assertEqual(controller.quiz_state, "active")
        self.assertEqual(controller.current_question.question_number, 2)
        self.assertFalse(controller.feedback.has_feedback)
        self.assertEqual(controller.get_score().hints_used, 1)

    def test_no_hint_feedback_when_disabled(self) -> None:
        controller, _ = make_controller(total=1, max_attempts=1, auto_show_hint=False)
        controller.start(HighlightZone("c", [(1, 8), (1, 10)]))
        q = controller.current_question
        other = note_at(1, 10) if q.target_pitch_class == "C" else note_at(1, 8)
        controller.submit_answer(other)
        self.assertEqual(controller.quiz_state, "hint")
        self.assertFalse(controller.feedback.has_feedback_at(q.target_note.position_id))


class ConfigAndResetTests(unittest.TestCase):
    def test_update_config_refused_while_active(self) -> None:
        controller, _ = make_controller()
        controller.start(HighlightZone("c", [(1, 8)]))
        self.assertFalse(controller.update_config(auto_advance_delay_ms=10))
        controller.reset()
        self.assertEqual(controller.quiz_state, "idle")
        self.assertIsNone(controller.current_question)
        self.assertTrue(controller.update_config(quiz={"max_attempts": 5, "total_questions": 4}))
        self.assertEqual(controller.state.config.total_questions, 4)
        self.assertEqual(controller.validator.config.max_attempts, 5)

    def test_no_auto_advance(self) -> None:
        controller, scheduler = make_controller(total=2, auto_advance=False)
        controller.start(HighlightZone("two", [(1, 8), (1, 10)]))
        controller.submit_answer(controller.current_question.target_note)
        self.assertFalse(controller.is_auto_advance_pending)
        self.assertIsNone(controller.state.current_question)
        shown = controller.current_question
        self.assertIsNotNone(shown)
        self.assertEqual(shown.question_number, 1)
        self.assertTrue(controller.advance_to_next_question())
        self.assertEqual(controller.current_question.question_number, 2)

    def test_manual_advance_while_paused_clears_pause(self) -> None:
        controller, scheduler = make_controller(total=2, auto_advance=False)
        controller.start(HighlightZone("two", [(1, 8), (1, 10)]))
        controller.submit_answer(controller.current_question.target_note)
        self.assertTrue(controller.pause())
        scheduler.advance(400)
        self.assertEqual(controller.paused_duration, 400)
        self.assertTrue(controller.advance_to_next_question())
        self.assertTrue(controller.is_running)
        self.assertIsNone(controller.paused_at)
        self.assertEqual(controller.paused_duration, 0)
        self.assertEqual(controller.current_question.question_number, 2)

    def test_set_zone_mid_quiz_feeds_next_question(self) -> None:
        controller, scheduler = make_controller(total=3)
        controller.start(HighlightZone("c", [(1, 8), (1, 10)]))
        controller.submit_answer(controller.current_question.target_note)
        self.assertTrue(controller.set_zone(HighlightZone("low", [(6, 0)])))
        self.assertEqual(controller.active_zone.name, "low")
        scheduler.advance(1000)
        q = controller.state.current_question
        self.assertEqual(q.question_number, 2)
        self.assertEqual(q.target_note.position_id, "s6f0")
        self.assertEqual(q.target_pitch_class, "E")

    def test_set_zone_rejects_empty(self) -> None:
        controller, _ = make_controller()
        self.assertFalse(controller.set_zone(HighlightZone()))
        self.assertFalse(controller.set_zone(None))
        self.assertIsNone(controller.active_zone)

    def test_dispose_stops_timers_and_listeners(self) -> None:
        controller, scheduler = make_controller(total=3)
        seen: List[str] = []
        for name in ("question_ready", "quiz_completed", "auto_advance_scheduled"):
            controller.on(name, lambda e: seen.append(e.type))
        controller.start(HighlightZone("two", [(1, 8), (1, 10)]))
        controller.submit_answer(controller.current_question.target_note)
        self.assertTrue(controller.is_auto_advance_pending)
        self.assertGreater(controller.feedback.active_count, 0)
        before = list(seen)
        controller.dispose()
        scheduler.advance(5000)
        self.assertEqual(seen, before)
        self.assertEqual(controller.feedback.active_count, 0)
        self.assertEqual(scheduler.pending_count, 0)
        self.assertFalse(controller.is_auto_advance_pending)

    def test_reset_emits_event(self) -> None:
        controller, scheduler = make_controller(total=2)
        seen: List[str] = []
        controller.on("quiz_reset", lambda e: seen.append(e.quiz_state))
        controller.start(HighlightZone("two", [(1, 8), (1, 10)]))
        controller.submit_answer(controller.current_question.target_note)
        controller.reset()
        self.assertEqual(seen, ["idle"])
        self.assertEqual(scheduler.pending_count, 0)


if __name__ == "__main__":
    unittest.main()
