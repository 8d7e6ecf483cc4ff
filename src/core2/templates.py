"""Narrative templates whose bracketed placeholders are the only editable parts.

Only the text between brackets may change. The scaffold around the brackets
is always restored from the default template, and an edit that adds or
removes a placeholder is rejected.
"""

from __future__ import annotations

import re

DEFAULT_USER_STORY = (
    "As a [user role],\n"
    "I want [what they need to do],\n"
    "so that [problem it solves]."
)
DEFAULT_ACCEPTANCE_CRITERIA = (
    "- Done when:\n"
    "  - [condition 1]\n"
    "  - [condition 2]\n"
    "  - [condition 3]"
)

_BRACKET_RE = re.compile(r"\[([^\]]*)\]")


def bracket_values(text: str) -> list[str]:
    """Ordered contents of every [..] placeholder in text."""
    return _BRACKET_RE.findall(text)


def apply_bracket_values(template: str, values: list[str]) -> str:
    """Fill the template's placeholders in order. Missing values become empty."""
    it = iter(values)
    return _BRACKET_RE.sub(lambda _m: f"[{next(it, '')}]", template)


def enforce_template_edit(template: str, proposed: str, last_accepted: str) -> str:
    """Return the value the field should hold after an edit."""
    values = bracket_values(proposed)
    if len(values) != len(bracket_values(template)):
        return last_accepted
    return apply_bracket_values(template, values)


class TemplateField:
    """A text field bound to a fixed template."""

    def __init__(self, template: str, value: str | None = None) -> None:
        self.template = template
        self.value = template if value is None else enforce_template_edit(
            template, value, template
        )

    def edit(self, proposed: str) -> bool:
        """Apply an edit. Returns False when it was rejected."""
        values = bracket_values(proposed)
        if len(values) != len(bracket_values(self.template)):
            return False
        self.value = apply_bracket_values(self.template, values)
        return True

    def fill(self, values: list[str]) -> bool:
        """Replace placeholder contents directly."""
        if len(values) != len(bracket_values(self.template)):
            return False
        if any("[" in v or "]" in v for v in values):
            return False
        self.value = apply_bracket_values(self.template, values)
        return True

    @property
    def placeholders(self) -> list[str]:
        return bracket_values(self.value)

    def reset(self) -> None:
        self.value = self.template
