"""Small helpers shared by the session core and the CLI.

Exposed functions:
    format_duration: Formats time durations into human-readable strings.
    parse_assignment: Splits ``key=value`` command line arguments.
"""

from .helpers import format_duration, parse_assignment

__all__ = ["format_duration", "parse_assignment"]
