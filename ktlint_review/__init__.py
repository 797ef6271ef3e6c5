"""Post ktlint findings on changed Kotlin files back to a code review."""

__version__ = "0.1.0"
