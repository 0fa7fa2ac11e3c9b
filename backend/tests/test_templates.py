from datetime import datetime, timezone

from visual_scheduler.schemas.schedule import ScheduleRead
from visual_scheduler.services.templates import (
    DEFAULT_COLOR,
    DEFAULT_ICON,
    PREDEFINED_ROUTINES,
    dashboard_cards,
    routine_color,
    routine_icon,
    schedule_stats,
)

from conftest import make_steps

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def saved(name, routine_type=None, published=True, steps=0, user_id="cg-1"):
    return ScheduleRead(
        id=name.lower().replace(" ", "-"),
        user_id=user_id,
        name=name,
        steps=make_steps(*[f"step {n}" for n in range(steps)]),
        is_published=published,
        routine_type=routine_type,
        created_at=NOW,
        updated_at=NOW,
    )


def test_predefined_routines_have_contiguous_steps():
    for template in PREDEFINED_ROUTINES:
        assert [s.step_number for s in template.steps] == list(range(1, len(template.steps) + 1))
        assert template.icon == routine_icon(template.routine_type)


def test_unknown_routine_type_falls_back_to_default_style():
    assert routine_icon(None) == DEFAULT_ICON
    assert routine_color("Homework Club") == DEFAULT_COLOR
    assert routine_color("Bedtime") == "#9370DB"


def test_dashboard_without_schedules_shows_every_template():
    cards = dashboard_cards([], "cg-1")
    assert [c.title for c in cards] == [t.title for t in PREDEFINED_ROUTINES]
    assert all(c.is_template for c in cards)


def test_template_hidden_by_routine_type_or_name():
    cards = dashboard_cards(
        [saved("Our mornings", routine_type="Morning Routine"), saved("Bedtime")],
        "cg-1",
    )
    titles = [c.title for c in cards]
    assert titles == ["Our mornings", "Bedtime", "Afternoon Routine", "Evening Routine"]
    assert cards[1].is_template is False


def test_dashboard_marks_drafts_and_foreign_schedules():
    cards = dashboard_cards([saved("Class", published=False, user_id="teacher-1")], "cg-1")
    assert cards[0].is_draft is True
    assert cards[0].is_own is False


def test_stats_count_steps_of_published_schedules_only():
    stats = schedule_stats([
        saved("A", steps=3),
        saved("B", steps=2),
        saved("C", published=False, steps=4),
    ])
    assert (stats.published_count, stats.draft_count, stats.total_steps) == (2, 1, 5)
