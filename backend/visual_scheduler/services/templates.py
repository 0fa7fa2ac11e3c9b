# backend/visual_scheduler/services/templates.py

from typing import List, Optional

from visual_scheduler.schemas.schedule import (
    DashboardCard,
    RoutineTemplate,
    ScheduleRead,
    ScheduleStats,
    Step,
)

DEFAULT_ICON = "⭐"
DEFAULT_COLOR = "#20B2AA"

ROUTINE_ICONS = {
    "Morning Routine": "☀️",
    "Afternoon Routine": "🌤️",
    "Evening Routine": "🌅",
    "Bedtime": "🌙",
    "Custom": "⭐",
}

ROUTINE_COLORS = {
    "Morning Routine": "#FFD700",
    "Afternoon Routine": "#87CEEB",
    "Evening Routine": "#FFA500",
    "Bedtime": "#9370DB",
    "Custom": "#20B2AA",
}


def routine_icon(routine_type: Optional[str]) -> str:
    return ROUTINE_ICONS.get(routine_type or "", DEFAULT_ICON)


def routine_color(routine_type: Optional[str]) -> str:
    return ROUTINE_COLORS.get(routine_type or "", DEFAULT_COLOR)


def _steps(*rows) -> List[Step]:
    return [
        Step(id=str(n), name=name, icon=icon, duration=duration, step_number=n)
        for n, (name, icon, duration) in enumerate(rows, start=1)
    ]


def _template(title: str, *rows) -> RoutineTemplate:
    return RoutineTemplate(
        title=title,
        routine_type=title,
        icon=routine_icon(title),
        color=routine_color(title),
        steps=_steps(*rows),
    )


# 기본 제공 루틴 (아직 저장된 스케줄이 없을 때 대시보드에 표시)
PREDEFINED_ROUTINES: List[RoutineTemplate] = [
    _template(
        "Morning Routine",
        ("Wake up", "☀️", "02:00"),
        ("Brush teeth", "🦷", "03:00"),
        ("Get dressed", "👕", "05:00"),
        ("Eat breakfast", "🍎", "10:00"),
        ("Pack school bag", "🎒", "03:00"),
        ("Leave for school", "🚂", "02:00"),
    ),
    _template(
        "Afternoon Routine",
        ("Lunch time", "🍽️", "15:00"),
        ("Play time", "🧸", "30:00"),
        ("Homework", "📚", "20:00"),
        ("Snack time", "🍎", "10:00"),
        ("Free time", "🎯", "15:00"),
    ),
    _template(
        "Evening Routine",
        ("Dinner time", "🍽️", "20:00"),
        ("Clean up", "🧼", "10:00"),
        ("Play time", "🎪", "30:00"),
        ("Prepare for bed", "🛏️", "15:00"),
    ),
    _template(
        "Bedtime",
        ("Put on pajamas", "👕", "05:00"),
        ("Brush teeth", "🦷", "03:00"),
        ("Read bedtime story", "📚", "10:00"),
        ("Say goodnight", "❤️", "02:00"),
        ("Go to sleep", "🌙", "01:00"),
    ),
]


def dashboard_cards(schedules: List[ScheduleRead], viewer_id: str) -> List[DashboardCard]:
    """
    저장된 스케줄 카드를 먼저, 그 다음 저장본이 없는 기본 루틴 카드를 반환합니다.
    기본 루틴은 routine_type 또는 이름이 같은 스케줄이 있으면 숨깁니다.
    """
    cards = [
        DashboardCard(
            id=f"schedule_{s.id}",
            title=s.name,
            icon=routine_icon(s.routine_type),
            color=routine_color(s.routine_type),
            step_count=len(s.steps),
            is_draft=not s.is_published,
            is_own=s.user_id == viewer_id,
            creator_role=s.creator_role,
            schedule=s,
        )
        for s in schedules
    ]

    for template in PREDEFINED_ROUTINES:
        if any(s.routine_type == template.title or s.name == template.title for s in schedules):
            continue
        cards.append(DashboardCard(
            id=f"template_{template.title}",
            title=template.title,
            icon=template.icon,
            color=template.color,
            step_count=len(template.steps),
            is_template=True,
            template=template,
        ))

    return cards


def schedule_stats(schedules: List[ScheduleRead]) -> ScheduleStats:
    published = [s for s in schedules if s.is_published]
    return ScheduleStats(
        published_count=len(published),
        draft_count=len(schedules) - len(published),
        total_steps=sum(len(s.steps) for s in published),
    )
