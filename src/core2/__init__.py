"""core2 - project, story and task tracker with a daily calendar."""

__version__ = "0.1.0"
