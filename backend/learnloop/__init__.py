"""LearnLoop backend: daily streaks, 7-day learning paths and the AI tutor."""

__version__ = "0.1.0"
