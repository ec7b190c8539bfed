import argparse
import json
import tempfile
import unittest
from contextlib import redirect_stdout, redirect_stderr
from io import StringIO
from pathlib import Path
from typing import Iterator, List

from frettrainer.app import cli
from frettrainer.app.flow_controller import QuizFlowController
from frettrainer.app.presets import QUIZ_PRESETS, get_preset, has_preset, zone_for_preset
from frettrainer.app.progressive_session import ProgressiveSession
from frettrainer.config.settings import FlowConfig, QuizConfig, merged
from frettrainer.quiz.progressive import ProgressiveMasteryTracker
from frettrainer.util.scheduler import CooperativeScheduler
from frettrainer.zones.zone import HighlightZone


def scripted_ui(answers: List[str], out: List[str]) -> dict:
    it: Iterator[str] = iter(answers)
    return {"ask": lambda _prompt: next(it), "inform": out.append}


class ParserTests(unittest.TestCase):
    def test_parse_position(self) -> None:
        self.assertEqual(cli.parse_position("s6f3"), (6, 3))
        self.assertEqual(cli.parse_position(" S1F12 "), (1, 12))
        self.assertEqual(cli.parse_position("5:0"), (5, 0))
        self.assertIsNone(cli.parse_position("sixth string"))
        self.assertIsNone(cli.parse_position(""))

    def test_parse_fret_range(self) -> None:
        self.assertEqual(cli.parse_fret_range("0-5"), (0, 5))
        self.assertEqual(cli.parse_fret_range("7 - 3"), (3, 7))
        with self.assertRaises(argparse.ArgumentTypeError):
            cli.parse_fret_range("five")

    def test_parse_strings(self) -> None:
        self.assertEqual(cli.parse_strings("6,5,4"), [6, 5, 4])
        with self.assertRaises(argparse.ArgumentTypeError):
            cli.parse_strings("6,x")


class PresetTests(unittest.TestCase):
    def test_presets(self) -> None:
        self.assertIsNone(get_preset("nope"))
        self.assertFalse(has_preset("nope"))
        for name in QUIZ_PRESETS:
            zone = zone_for_preset(name)
            self.assertFalse(zone.is_empty())
            self.assertEqual(zone.name, name)
        self.assertEqual(zone_for_preset("beginner").size(), 12)

    def test_preset_flow_overrides_validate(self) -> None:
        for name, params in QUIZ_PRESETS.items():
            flow = merged(FlowConfig(), **params["flow"])
            self.assertIsInstance(flow, FlowConfig, name)

    def test_build_quiz_zone(self) -> None:
        preset = get_preset("default")
        args = argparse.Namespace(preset="default", strings=None, frets=None)
        self.assertEqual(cli.build_quiz_zone(args, preset).size(), 3 * 13)
        args = argparse.Namespace(preset="default", strings=[1], frets=(0, 2))
        zone = cli.build_quiz_zone(args, preset)
        self.assertEqual(zone.position_ids(), ["s1f0", "s1f1", "s1f2"])


class MainTests(unittest.TestCase):
    def test_list_presets(self) -> None:
        out = StringIO()
        with redirect_stdout(out):
            self.assertEqual(cli.main(["list-presets"]), 0)
        self.assertIn("beginner: strings 6,5, frets 0-5, questions 10", out.getvalue())

    def test_show_params(self) -> None:
        out = StringIO()
        with redirect_stdout(out):
            self.assertEqual(cli.main(["show-params", "--preset", "advanced"]), 0)
        self.assertIn("Preset advanced:", out.getvalue())
        err = StringIO()
        with redirect_stderr(err):
            self.assertEqual(cli.main(["show-params", "--preset", "nope"]), 2)
        self.assertIn("Unknown preset 'nope'", err.getvalue())

    def test_stats_on_missing_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            out = StringIO()
            with redirect_stdout(out):
                code = cli.main(["stats", "--progress-file", str(Path(tmp) / "p.json"), "--detail"])
        self.assertEqual(code, 0)
        text = out.getvalue()
        self.assertIn("String 6 (Low E): learning, 1/12 frets", text)
        self.assertIn("String 5 (A): locked", text)
        self.assertIn("mean_mark", text)

    def test_stats_on_broken_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "p.json"
            path.write_text("[]", encoding="utf-8")
            err = StringIO()
            with redirect_stderr(err):
                self.assertEqual(cli.main(["stats", "--progress-file", str(path)]), 1)
        self.assertIn("ERROR:", err.getvalue())


class LoopTests(unittest.TestCase):
    def test_run_quiz_scripted(self) -> None:
        scheduler = CooperativeScheduler()
        cfg = FlowConfig(auto_advance=False, quiz=QuizConfig(total_questions=1))
        controller = QuizFlowController(cfg, scheduler=scheduler)
        out: List[str] = []
        code = cli.run_quiz(controller, scheduler, HighlightZone("c", [(1, 8)]), scripted_ui(["bogus", "1:10", "s1f8"], out))
        self.assertEqual(code, 0)
        self.assertEqual(out[0], "Enter a position like s6f3 or 6:3 (q to quit).")
        self.assertEqual(out[1], "Incorrect. You clicked D, but the target was C.")
        self.assertEqual(out[2], "Correct! That is C.")
        self.assertIn("Total: 1/1 correct (100%)", out[-1])

    def test_run_quiz_quit(self) -> None:
        scheduler = CooperativeScheduler()
        controller = QuizFlowController(scheduler=scheduler)
        out: List[str] = []
        code = cli.run_quiz(controller, scheduler, HighlightZone("c", [(1, 8)]), scripted_ui(["q"], out))
        self.assertEqual(code, 1)
        self.assertEqual(out, ["Quiz abandoned."])

    def test_run_progressive_saves_on_exit(self) -> None:
        scheduler = CooperativeScheduler()
        tracker = ProgressiveMasteryTracker()
        session = ProgressiveSession(tracker, scheduler=scheduler)
        out: List[str] = []
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "progress.json"
            code = cli.run_progressive(session, scheduler, str(path), scripted_ui(["s5f0", "quit"], out))
            saved = json.loads(path.read_text(encoding="utf-8"))
        self.assertEqual(code, 0)
        self.assertEqual(out[0], "The A string is locked!")
        self.assertEqual(out[-1], "\nSession: 0/0 correct")
        self.assertEqual(saved["schema"], 2)
        self.assertFalse(session.is_active)


if __name__ == "__main__":
    unittest.main()
