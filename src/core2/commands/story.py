"""core2 story - manage user stories."""

from __future__ import annotations

import click

from core2.cli import Core2Context, pass_ctx
from core2.commands.epic import owned_epic
from core2.commands.project import owned_project
from core2.errors import NotFoundError, ValidationError
from core2.models import Story, StoryStatus, StoryUpdate
from core2.templates import DEFAULT_ACCEPTANCE_CRITERIA, DEFAULT_USER_STORY, TemplateField
from core2.utils import format_story_row, format_task_row, format_test_log_row, format_time_ago
from core2.views import NO_EPIC, bucket_stories_by_epic, search_stories
from core2.workflows import create_story, load_story_details, update_story


def owned_story(ctx: Core2Context, partial: str) -> Story:
    ctx.require_session()
    assert ctx.repos is not None
    st = ctx.repos.stories.get_by_id(ctx.resolve("story", partial, "story"))
    try:
        owned_project(ctx, st.project_id)
    except NotFoundError:
        raise NotFoundError("story", partial) from None
    return st


def project_epic(ctx: Core2Context, partial: str, project_id: str) -> str:
    """Resolve an epic of the given project; epics elsewhere read as not found."""
    ep = owned_epic(ctx, partial)
    if ep.project_id != project_id:
        raise NotFoundError("epic", partial)
    return ep.id


def _fill(template: str, current: str, values: list[str | None]) -> str | None:
    """Fill placeholders of current text; None leaves a placeholder as is.

    Returns None when no value was given.
    """
    if all(v is None for v in values):
        return None
    field = TemplateField(template)
    if not field.edit(current):
        raise ValidationError(
            f"text must keep the template's {len(field.placeholders)} [placeholders]")
    merged = [new if new is not None else old
              for new, old in zip(values, field.placeholders)]
    if not field.fill(merged):
        raise ValidationError("placeholder text cannot contain '[' or ']'")
    return field.value


def _criteria_values(criteria: tuple[str, ...]) -> list[str | None]:
    slots = len(TemplateField(DEFAULT_ACCEPTANCE_CRITERIA).placeholders)
    if len(criteria) > slots:
        raise ValidationError(f"at most {slots} acceptance conditions")
    return list(criteria) + [None] * (slots - len(criteria))


_narrative_options = [
    click.option("--role", default=None, help="User role ('As a ...')"),
    click.option("--want", default=None, help="What they need to do ('I want ...')"),
    click.option("--so-that", "so_that", default=None, help="Problem it solves"),
    click.option("--user-story", default=None, help="Full narrative text (template form)"),
    click.option("--criterion", "-c", "criteria", multiple=True,
                 help="Acceptance condition (repeatable, in order)"),
    click.option("--acceptance", default=None, help="Full acceptance text (template form)"),
]


def narrative_options(f):
    for option in reversed(_narrative_options):
        f = option(f)
    return f


@click.group("story")
def story() -> None:
    """Manage user stories."""


@story.command("create")
@click.option("--project", "-p", "project_id", default=None,
              help="Project ID (default: last opened)")
@click.option("--title", "-t", required=True, help="Story title")
@click.option("--priority", default="3", help="Priority 1 (low) to 5 (high)")
@click.option("--epic", "-e", "epic_id", default=None, help="Epic ID")
@narrative_options
@pass_ctx
def story_create(ctx: Core2Context, project_id: str | None, title: str, priority: str,
                 epic_id: str | None, role: str | None, want: str | None,
                 so_that: str | None, user_story: str | None,
                 criteria: tuple[str, ...], acceptance: str | None) -> None:
    """Create a story from the narrative templates."""
    proj = owned_project(ctx, project_id)
    assert ctx.repos is not None
    if epic_id:
        epic_id = project_epic(ctx, epic_id, proj.id)

    narrative = user_story if user_story is not None else DEFAULT_USER_STORY
    narrative = _fill(DEFAULT_USER_STORY, narrative, [role, want, so_that]) or narrative
    accept = acceptance if acceptance is not None else DEFAULT_ACCEPTANCE_CRITERIA
    accept = _fill(DEFAULT_ACCEPTANCE_CRITERIA, accept, _criteria_values(criteria)) or accept

    st = create_story(ctx.repos, proj.id, title, narrative, accept,
                      priority=priority, epic_id=epic_id)
    if ctx.json_output:
        ctx.output(st.to_dict())
    else:
        click.echo(f"Created story {st.id}: {st.title}")


@story.command("list")
@click.option("--project", "-p", "project_id", default=None,
              help="Project ID (default: last opened)")
@click.option("--epic", "-e", "epic_id", default=None,
              help=f"Only stories of this epic ('{NO_EPIC}' for none)")
@click.option("--search", "-s", "query", default="", help="Match title or narrative")
@click.option("--by-epic", is_flag=True, help="Group stories under their epics")
@pass_ctx
def story_list(ctx: Core2Context, project_id: str | None, epic_id: str | None,
               query: str, by_epic: bool) -> None:
    """List a project's stories (highest priority first)."""
    proj = owned_project(ctx, project_id)
    assert ctx.repos is not None
    stories = search_stories(ctx.repos.stories.list_by_project(proj.id), query)
    epics = ctx.repos.epics.list_by_project(proj.id) if (by_epic or epic_id) else []

    if epic_id is not None:
        key = epic_id if epic_id == NO_EPIC else ctx.resolve("epic", epic_id, "epic")
        stories = bucket_stories_by_epic(stories, epics).get(key, [])

    if ctx.json_output:
        ctx.output([s.to_dict() for s in stories])
        return
    if not stories:
        click.echo("No stories found.")
        return

    if not by_epic:
        for s in stories:
            click.echo(format_story_row(s))
        return

    buckets = bucket_stories_by_epic(stories, epics)
    for ep in epics:
        if ep.id in buckets:
            click.echo(f"#{ep.order_no} {ep.title}")
            for s in buckets[ep.id]:
                click.echo(f"  {format_story_row(s)}")
    if NO_EPIC in buckets:
        click.echo("(no epic)")
        for s in buckets[NO_EPIC]:
            click.echo(f"  {format_story_row(s)}")


@story.command("show")
@click.argument("story_id")
@pass_ctx
def story_show(ctx: Core2Context, story_id: str) -> None:
    """Show a story with its tasks and test logs."""
    st = owned_story(ctx, story_id)
    assert ctx.repos is not None
    details = load_story_details(ctx.repos, st.id)

    if ctx.json_output:
        data = st.to_dict()
        data["tasks"] = [t.to_dict() for t in details.tasks]
        data["test_logs"] = [log.to_dict() for log in details.test_logs]
        data["errors"] = details.errors
        ctx.output(data)
        return

    click.echo(f"{'─' * 60}")
    click.echo(f"  {st.id}")
    click.echo(f"{'─' * 60}")
    click.echo(f"  Title:    {st.title}")
    click.echo(f"  Status:   {st.status}")
    click.echo(f"  Priority: P{st.priority}")
    if st.epic_id:
        click.echo(f"  Epic:     {st.epic_id}")
    click.echo(f"  Created:  {format_time_ago(st.created_at)}")

    click.echo("\n  User story:")
    for line in st.user_story.split("\n"):
        click.echo(f"    {line}")
    if st.acceptance_criteria:
        click.echo("\n  Acceptance criteria:")
        for line in st.acceptance_criteria.split("\n"):
            click.echo(f"    {line}")

    for name, message in details.errors.items():
        click.echo(f"Warning: could not load {name}: {message}", err=True)
    if details.tasks:
        click.echo(f"\n  Tasks ({len(details.tasks)}):")
        for t in details.tasks:
            click.echo(f"    {format_task_row(t)}")
    if details.test_logs:
        click.echo(f"\n  Test logs ({len(details.test_logs)}):")
        for log in details.test_logs:
            click.echo(f"    {format_test_log_row(log)}")
    click.echo()


@story.command("update")
@click.argument("story_id")
@click.option("--title", "-t", default=None, help="New title")
@click.option("--priority", default=None, help="Priority 1 (low) to 5 (high)")
@click.option("--status", "-s", default=None, type=click.Choice(list(StoryStatus.ALL)),
              help="New status")
@click.option("--epic", "-e", "epic_id", default=None, help="Epic ID ('' detaches)")
@narrative_options
@pass_ctx
def story_update(ctx: Core2Context, story_id: str, title: str | None, priority: str | None,
                 status: str | None, epic_id: str | None, role: str | None,
                 want: str | None, so_that: str | None, user_story: str | None,
                 criteria: tuple[str, ...], acceptance: str | None) -> None:
    """Update a story. Only placeholder text in the narrative can change."""
    st = owned_story(ctx, story_id)
    assert ctx.repos is not None
    patch = StoryUpdate()
    if title is not None:
        patch.title = title
    if priority is not None:
        patch.priority = priority
    if status is not None:
        patch.status = status
    if epic_id is not None:
        patch.epic_id = project_epic(ctx, epic_id, st.project_id) if epic_id else None

    narrative = user_story if user_story is not None else st.user_story
    filled = _fill(DEFAULT_USER_STORY, narrative, [role, want, so_that])
    if filled is not None or user_story is not None:
        patch.user_story = filled or narrative
    accept = acceptance if acceptance is not None else st.acceptance_criteria
    filled = _fill(DEFAULT_ACCEPTANCE_CRITERIA, accept, _criteria_values(criteria))
    if filled is not None or acceptance is not None:
        patch.acceptance_criteria = filled or accept

    if not patch.to_patch():
        click.echo("Nothing to update.")
        return
    st = update_story(ctx.repos, st.id, patch)
    if ctx.json_output:
        ctx.output(st.to_dict())
    else:
        click.echo(f"Updated story {st.id}")


@story.command("delete")
@click.argument("story_id")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@pass_ctx
def story_delete(ctx: Core2Context, story_id: str, yes: bool) -> None:
    """Delete a story row."""
    st = owned_story(ctx, story_id)
    assert ctx.repos is not None
    if not yes:
        click.confirm(f"Delete story '{st.title}'?", abort=True)
    ctx.repos.stories.remove(st.id)
    if ctx.json_output:
        ctx.output({"deleted": st.id})
    else:
        click.echo(f"Deleted story {st.id}")
