from .zone import HighlightZone, NotePosition, parse_position_id  # noqa: F401
