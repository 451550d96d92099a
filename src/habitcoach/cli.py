"""Command line front end for HabitCoach."""

from __future__ import annotations

from datetime import date

import click

from .config import BaseConfig
from .context import AppContext, create_app_context
from .logging_config import setup_logging
from .scheduler import create_scheduler
from .services.coach import CoachSession
from .services.habits import HabitAccessError, HabitNotFoundError


def _parse_date(_ctx, _param, value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise click.BadParameter("use YYYY-MM-DD") from exc


def _habit_id(app: AppContext, name: str) -> int:
    try:
        return app.tracker.find_habit(name, user_id=app.require_user_id()).id
    except HabitNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Track habits, streaks and achievements from the terminal."""

    if ctx.obj is None:
        config = BaseConfig()
        setup_logging(config)
        ctx.obj = create_app_context(config)


@cli.command("add")
@click.argument("name")
@click.option(
    "--frequency",
    "-f",
    type=click.Choice(["daily", "weekly", "monthly"], case_sensitive=False),
    default="daily",
    show_default=True,
)
@click.option("--description", "-d", default=None)
@click.pass_obj
def add_habit(app: AppContext, name: str, frequency: str, description: str | None) -> None:
    """Create a habit."""

    try:
        habit = app.tracker.add_habit(
            name, frequency, user_id=app.require_user_id(), description=description
        )
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Added {habit.name} ({habit.frequency})")


@cli.command("list")
@click.pass_obj
def list_habits(app: AppContext) -> None:
    """Show habits with their streaks."""

    habits = app.tracker.list_habits(user_id=app.require_user_id())
    if not habits:
        click.echo("No habits yet. Add one with: habitcoach add NAME")
        return
    today_key = date.today().isoformat()
    for habit in habits:
        mark = "x" if today_key in (habit.completed_dates or []) else " "
        click.echo(f"[{mark}] {habit.name:<24} {habit.frequency:<8} streak {habit.streak}")


@cli.command("done")
@click.argument("name")
@click.option("--date", "on", callback=_parse_date, help="Day to mark (YYYY-MM-DD)")
@click.option("--note", default=None)
@click.pass_obj
def complete(app: AppContext, name: str, on: date | None, note: str | None) -> None:
    """Mark a habit completed (today by default)."""

    habit_id = _habit_id(app, name)
    try:
        result = app.tracker.complete_habit(
            habit_id, user_id=app.require_user_id(), when=on, notes=note
        )
    except (ValueError, HabitAccessError) as exc:
        raise click.ClickException(str(exc)) from exc

    if result.already_completed:
        click.echo(f"{result.habit.name} was already completed for that day.")
        return
    click.echo(f"Nice! {result.habit.name} streak: {result.habit.streak}")
    for achievement in result.achievements:
        click.echo(f"Achievement unlocked: {achievement.name}")
    for insight in result.insights:
        click.echo(f"New insight: {insight.title}")


@cli.command("undo")
@click.argument("name")
@click.option("--date", "on", callback=_parse_date, help="Day to unmark (YYYY-MM-DD)")
@click.pass_obj
def uncomplete(app: AppContext, name: str, on: date | None) -> None:
    """Remove a completion (today by default)."""

    habit = app.tracker.uncomplete_habit(_habit_id(app, name), user_id=app.require_user_id(), when=on)
    click.echo(f"{habit.name} streak: {habit.streak}")


@cli.command("remove")
@click.argument("name")
@click.confirmation_option(prompt="Delete this habit and all of its history?")
@click.pass_obj
def remove(app: AppContext, name: str) -> None:
    """Delete a habit and its completion history."""

    app.tracker.delete_habit(_habit_id(app, name), user_id=app.require_user_id())
    click.echo(f"Deleted {name}")


@cli.command("stats")
@click.argument("name")
@click.pass_obj
def stats(app: AppContext, name: str) -> None:
    """Show derived statistics for a habit."""

    s = app.tracker.stats_for(_habit_id(app, name), user_id=app.require_user_id())
    click.echo(f"Current streak:     {s.current_streak}")
    click.echo(f"Longest streak:     {s.longest_streak}")
    click.echo(f"Total completions:  {s.total_completions}")
    click.echo(f"Completion rate:    {s.completion_rate:.1f}%")
    click.echo(f"Last 7 days:        {s.last_week_completions} ({s.weekly_completion_rate:.1f}%)")
    click.echo(f"Last 30 days:       {s.last_month_completions} ({s.monthly_completion_rate:.1f}%)")
    click.echo(f"Consistency score:  {s.consistency_score}/100")


@cli.command("achievements")
@click.pass_obj
def achievements(app: AppContext) -> None:
    """List unlocked achievements."""

    rows = app.achievement_repo.list_for_user(user_id=app.require_user_id())
    if not rows:
        click.echo("No achievements yet. Keep going!")
        return
    for row in rows:
        click.echo(f"{row.unlocked_at:%Y-%m-%d}  {row.name}  {row.description}")


@cli.command("insights")
@click.option("--limit", default=10, show_default=True)
@click.pass_obj
def insights(app: AppContext, limit: int) -> None:
    """List stored insights, newest first."""

    rows = app.insight_repo.list_for_user(user_id=app.require_user_id(), limit=limit)
    if not rows:
        click.echo("No insights yet.")
        return
    for row in rows:
        click.echo(f"== {row.title} ({row.generated_at:%Y-%m-%d})")
        click.echo(row.description)
        for item in row.action_items or []:
            click.echo(f"  - {item}")


@cli.command("summary")
@click.pass_obj
def summary(app: AppContext) -> None:
    """Generate and store this week's summary."""

    insight = app.tracker.summarize_week(user_id=app.require_user_id())
    if insight is None:
        click.echo("No habits to summarize.")
        return
    click.echo(insight.description)
    for item in insight.action_items or []:
        click.echo(f"  - {item}")


@cli.command("ask")
@click.argument("message", nargs=-1, required=True)
@click.pass_obj
def ask(app: AppContext, message: tuple[str, ...]) -> None:
    """Ask the coach a question."""

    click.echo(app.tracker.ask(" ".join(message), user_id=app.require_user_id()))


@cli.command("chat")
@click.pass_obj
def chat(app: AppContext) -> None:
    """Talk to the coach until an empty line or EOF.

    The daily streak refresh runs in the background while the chat is open.
    """

    user = app.current_user
    session = CoachSession(user_name=user.display_name if user else None)
    uid = app.require_user_id()
    scheduler = create_scheduler(app, auto_start=True)
    try:
        click.echo(session.messages[0].text)
        while True:
            text = click.prompt("you", default="", show_default=False)
            if not text.strip():
                break
            reply = session.send(text, app.tracker.list_habits(user_id=uid))
            if reply is not None:
                click.echo(reply.text)
    finally:
        scheduler.stop()


@cli.command("refresh-streaks")
@click.pass_obj
def refresh_streaks(app: AppContext) -> None:
    """Recompute cached streaks as of today."""

    changed = app.tracker.refresh_streaks(user_id=app.require_user_id())
    click.echo(f"Updated {changed} streak(s)")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
