"""frettrainer package initialization.

Session engine for a fretboard note-identification quiz: answer validation,
adaptive question selection, a quiz state machine, timed feedback and a
flow controller with auto-advance and pause/resume.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
