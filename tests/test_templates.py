"""Tests for template-constrained text fields."""

from core2.templates import (
    DEFAULT_ACCEPTANCE_CRITERIA, DEFAULT_USER_STORY, TemplateField, apply_bracket_values,
    bracket_values, enforce_template_edit,
)


def test_bracket_values():
    assert bracket_values(DEFAULT_USER_STORY) == [
        "user role", "what they need to do", "problem it solves"]
    assert len(bracket_values(DEFAULT_ACCEPTANCE_CRITERIA)) == 3
    assert bracket_values("no placeholders") == []
    assert bracket_values("[]") == [""]


def test_apply_bracket_values_keeps_scaffold():
    text = apply_bracket_values("As a [x], I want [y].", ["admin", "reports"])
    assert text == "As a [admin], I want [reports]."


def test_edit_with_wrong_bracket_count_is_rejected():
    last = "As a [admin],\nI want [reports],\nso that [I can plan]."
    proposed = "As a [admin],\nI want reports,\nso that [I can plan]."
    assert enforce_template_edit(DEFAULT_USER_STORY, proposed, last) == last
    extra = last + " [more]"
    assert enforce_template_edit(DEFAULT_USER_STORY, extra, last) == last


def test_edit_outside_brackets_is_reverted():
    proposed = "Being a [admin], I'd like [reports] because [I can plan]!"
    result = enforce_template_edit(DEFAULT_USER_STORY, proposed, DEFAULT_USER_STORY)
    assert result == "As a [admin],\nI want [reports],\nso that [I can plan]."


def test_template_field_edit():
    field = TemplateField(DEFAULT_USER_STORY)
    assert field.value == DEFAULT_USER_STORY
    assert field.edit("As a [clerk],\nI want [export],\nso that [audits pass].") is True
    assert field.placeholders == ["clerk", "export", "audits pass"]
    before = field.value
    assert field.edit("As a clerk") is False
    assert field.value == before
    field.reset()
    assert field.value == DEFAULT_USER_STORY


def test_template_field_fill():
    field = TemplateField(DEFAULT_ACCEPTANCE_CRITERIA)
    assert field.fill(["saves", "validates", "logs"]) is True
    assert "  - [validates]" in field.value
    assert field.fill(["only one"]) is False
    assert field.fill(["a]", "b", "c"]) is False
    assert field.placeholders == ["saves", "validates", "logs"]


def test_template_field_initial_value_is_normalized():
    field = TemplateField(DEFAULT_USER_STORY, "[a] [b] [c]")
    assert field.value == "As a [a],\nI want [b],\nso that [c]."
    field = TemplateField(DEFAULT_USER_STORY, "broken")
    assert field.value == DEFAULT_USER_STORY
