"""TimetableBot - personal class timetable with ICS import and transit lookup."""

__version__ = "1.0.0"
__author__ = "TimetableBot Team"
__email__ = "support@timetablebot.local"
__description__ = "Student timetable web API with ICS import, agendas and transit connections"

# Package metadata
__all__ = [
    "__author__",
    "__description__",
    "__email__",
    "__version__",
]
