from __future__ import annotations

"""Text CLI for frettrainer.

Positions are typed as `s<string>f<fret>` (e.g. s6f3) or `<string>:<fret>`.
Timers run on the real clock; the loops below poll the scheduler between
prompts.
"""

import argparse
import re
import sys
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..analytics.metrics import compute_metrics, mastery_frame, string_summary
from ..config.config import load_config, validate_config
from ..config.settings import AppConfig, merged
from ..quiz.progressive import STRING_PROGRESSION
from ..results.persist import SnapshotError, load_progress, save_progress
from ..stats.stats import format_result, format_string_detail, format_summary
from ..theory.fretboard import Fretboard
from ..util.randomness import make_rng, seed_if_needed
from ..util.scheduler import CooperativeScheduler
from ..zones.zone import HighlightZone
from .flow_controller import QuizFlowController
from .presets import QUIZ_PRESETS, get_preset, zone_for_preset
from .progressive_session import ProgressiveSession


_POS_RE = re.compile(r"^\s*(?:s(\d+)f(\d+)|(\d+):(\d+))\s*$", re.IGNORECASE)
_RANGE_RE = re.compile(r"^\s*(\d+)\s*-\s*(\d+)\s*$")

UI = Dict[str, Callable[..., Any]]


def parse_position(text: str) -> Optional[Tuple[int, int]]:
    """Parse "s6f3" or "6:3" into (string, fret). Returns None if it does not match."""
    m = _POS_RE.match(text)
    if not m:
        return None
    if m.group(1) is not None:
        return int(m.group(1)), int(m.group(2))
    return int(m.group(3)), int(m.group(4))


def parse_strings(text: str) -> List[int]:
    try:
        return [int(t) for t in text.split(",") if t.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"strings must look like 6,5,4 (got '{text}')")


def parse_fret_range(text: str) -> Tuple[int, int]:
    m = _RANGE_RE.match(text)
    if not m:
        raise argparse.ArgumentTypeError(f"frets must look like 0-5 (got '{text}')")
    lo, hi = int(m.group(1)), int(m.group(2))
    return (lo, hi) if lo <= hi else (hi, lo)


def _build_ui() -> UI:
    def ask(prompt: str) -> str:
        return input(prompt)

    def inform(msg: str) -> None:
        print(msg)

    return {"ask": ask, "inform": inform}


def _wait_for_timers(scheduler: CooperativeScheduler, still_waiting: Callable[[], bool]) -> None:
    while still_waiting():
        wait = scheduler.time_until_next()
        if wait is None:
            return
        time.sleep(wait / 1000.0)
        scheduler.run_pending()


def _load_app_config(path: Optional[str]) -> AppConfig:
    return validate_config(load_config(path))


def build_quiz_zone(args: argparse.Namespace, preset: Dict[str, Any]) -> HighlightZone:
    strings = args.strings if args.strings else preset["strings"]
    lo, hi = args.frets if args.frets else (preset["fret_start"], preset["fret_end"])
    if not args.strings and not args.frets:
        zone = zone_for_preset(args.preset)
        if zone is not None:
            return zone
    return HighlightZone.from_ranges(strings, lo, hi, name="custom")


def run_quiz(controller: QuizFlowController, scheduler: CooperativeScheduler, zone: HighlightZone, ui: UI) -> int:
    ask, inform = ui["ask"], ui["inform"]
    fb = controller.fretboard
    if not controller.start(zone):
        inform("Could not start quiz: the zone is empty.")
        return 2
    while controller.quiz_state != "complete":
        scheduler.run_pending()
        live = controller.state.current_question
        if controller.quiz_state == "hint":
            target = live.target_note if live else None
            where = f" It is at string {target.string}, fret {target.fret}." if target else ""
            ask(f"Out of attempts.{where} Press Enter to continue. ")
            controller.acknowledge_hint()
            continue
        if live is None:
            if controller.is_auto_advance_pending:
                _wait_for_timers(scheduler, lambda: controller.is_auto_advance_pending)
                continue
            controller.advance_to_next_question()
            if controller.state.current_question is None:
                inform("No question could be generated for this zone.")
                return 2
            continue
        progress = controller.get_progress()
        raw = ask(f"[{progress.display}] {live.question_text} > ").strip()
        if raw.lower() in ("q", "quit"):
            inform("Quiz abandoned.")
            return 1
        pos = parse_position(raw)
        note = fb.get_note_at(*pos) if pos else None
        if note is None:
            inform("Enter a position like s6f3 or 6:3 (q to quit).")
            continue
        res = controller.submit_answer(note)
        if res is not None:
            inform(res.feedback_message)
        _wait_for_timers(scheduler, lambda: controller.is_auto_advance_pending)
    result = controller.get_result()
    if result is not None:
        inform("\nQuiz Summary:")
        inform(format_result(result))
    return 0


def run_progressive(session: ProgressiveSession, scheduler: CooperativeScheduler, progress_file: str, ui: UI) -> int:
    ask, inform = ui["ask"], ui["inform"]
    tracker = session.tracker
    session.on("fret_unlocked", lambda e: inform(f"Unlocked fret {(e.unlocked_frets or 1) - 1} on string {e.string}!"))
    session.on("string_unlocked", lambda e: inform(f"String {e.string} is now open!"))
    session.start()
    try:
        while True:
            _wait_for_timers(scheduler, lambda: session.next_note_pending)
            q = session.current_question
            if q is None:
                inform("No question available.")
                return 2
            raw = ask(f"[string {tracker.current_string}, {tracker.unlocked_frets}/12] {q.question_text} > ").strip()
            if raw.lower() in ("q", "quit"):
                break
            pos = parse_position(raw)
            note = session.fretboard.get_note_at(*pos) if pos else None
            if note is None:
                inform("Enter a position like s6f3 or 6:3 (q to quit).")
                continue
            ans = session.submit_answer(note)
            inform(ans.message)
            if ans.result in ("correct", "incorrect"):
                save_progress(progress_file, tracker)
        inform(f"\nSession: {session.correct}/{session.total} correct")
        return 0
    finally:
        session.dispose()
        save_progress(progress_file, tracker)


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="frettrainer")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("list-presets")

    sp = sub.add_parser("show-params")
    sp.add_argument("--preset", default="default")

    qp = sub.add_parser("quiz")
    qp.add_argument("--config", default=None)
    qp.add_argument("--preset", default="default")
    qp.add_argument("--strings", type=parse_strings, default=None, help="Comma-separated strings, e.g. 6,5")
    qp.add_argument("--frets", type=parse_fret_range, default=None, help="Fret window, e.g. 0-5")
    qp.add_argument("--questions", type=int, default=None)
    qp.add_argument("--no-auto-advance", dest="auto_advance", action="store_false")
    qp.set_defaults(auto_advance=None)
    qp.add_argument("--explain", action="store_true")

    pp = sub.add_parser("progressive")
    pp.add_argument("--config", default=None)
    pp.add_argument("--progress-file", default=None)
    pp.add_argument("--explain", action="store_true")

    st = sub.add_parser("stats")
    st.add_argument("--config", default=None)
    st.add_argument("--progress-file", default=None)
    st.add_argument("--detail", action="store_true", help="Per-fret detail and per-string table")

    args = p.parse_args(argv)

    if args.cmd == "list-presets":
        for name, params in QUIZ_PRESETS.items():
            quiz = params["flow"].get("quiz", {})
            strings = ",".join(str(s) for s in params["strings"])
            print(f"{name}: strings {strings}, frets {params['fret_start']}-{params['fret_end']}, questions {quiz.get('total_questions', '-')}")
        return 0

    if args.cmd == "show-params":
        preset = get_preset(args.preset)
        if preset is None:
            print(f"Unknown preset '{args.preset}'. Try: {', '.join(QUIZ_PRESETS)}", file=sys.stderr)
            return 2
        print(f"Preset {args.preset}:")
        for k, v in preset.items():
            print(f"  - {k}: {v}")
        return 0

    if getattr(args, "explain", False):
        from .explain import enable as explain_enable
        explain_enable(True)

    if args.cmd == "quiz":
        seed = seed_if_needed()
        preset = get_preset(args.preset)
        if preset is None:
            print(f"Unknown preset '{args.preset}'. Try: {', '.join(QUIZ_PRESETS)}", file=sys.stderr)
            return 2
        cfg = _load_app_config(args.config)
        flow = merged(cfg.flow, **preset["flow"])
        if args.questions is not None:
            flow = merged(flow, quiz={"total_questions": args.questions})
        if args.auto_advance is not None:
            flow = merged(flow, auto_advance=args.auto_advance)
        scheduler = CooperativeScheduler.realtime()
        controller = QuizFlowController(
            flow,
            fretboard=Fretboard.from_tuning_name(cfg.tuning, cfg.fret_count),
            scheduler=scheduler,
            rng=make_rng(seed),
        )
        zone = build_quiz_zone(args, preset)
        try:
            return run_quiz(controller, scheduler, zone, _build_ui())
        except (KeyboardInterrupt, EOFError):
            print("\nQuiz abandoned.")
            return 1
        finally:
            controller.dispose()

    if args.cmd == "progressive":
        seed = seed_if_needed()
        cfg = _load_app_config(args.config)
        path = args.progress_file or cfg.progress_path
        try:
            tracker = load_progress(path, cfg.progressive, rng=make_rng(seed))
        except SnapshotError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1
        scheduler = CooperativeScheduler.realtime()
        session = ProgressiveSession(tracker, Fretboard(), scheduler)
        try:
            return run_progressive(session, scheduler, path, _build_ui())
        except (KeyboardInterrupt, EOFError):
            print("\nProgress saved.")
            return 0

    if args.cmd == "stats":
        cfg = _load_app_config(args.config)
        path = args.progress_file or cfg.progress_path
        try:
            tracker = load_progress(path, cfg.progressive)
        except SnapshotError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1
        print(format_summary(tracker))
        if args.detail:
            for s in STRING_PROGRESSION:
                if tracker.is_string_unlocked(s):
                    print()
                    print(format_string_detail(tracker, s))
            print()
            print(string_summary(compute_metrics(mastery_frame(tracker))).to_string(index=False))
        return 0

    return 0


def run() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    run()
