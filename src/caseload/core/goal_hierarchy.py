"""Goal/sub-goal hierarchy helpers."""

from __future__ import annotations

from dataclasses import dataclass, field

from caseload.db.goals_repository import GoalRecord


@dataclass
class GoalHierarchy:
    """Goals split into top-level goals, children per parent and orphans.

    Orphans are sub-goals whose parent id points at a goal that is not in
    the set (deleted, or belonging to another student).
    """

    parent_goals: list[GoalRecord] = field(default_factory=list)
    sub_goals_by_parent: dict[str, list[GoalRecord]] = field(default_factory=dict)
    orphan_goals: list[GoalRecord] = field(default_factory=list)


def organize_goals(goals: list[GoalRecord]) -> GoalHierarchy:
    """Organize a flat goal list into a hierarchy, preserving input order."""
    by_id = {g.id: g for g in goals}
    hierarchy = GoalHierarchy()

    for goal in goals:
        parent_id = goal.parent_goal_id
        if not parent_id:
            hierarchy.parent_goals.append(goal)
        elif parent_id in by_id and parent_id != goal.id:
            hierarchy.sub_goals_by_parent.setdefault(parent_id, []).append(goal)
        else:
            hierarchy.orphan_goals.append(goal)

    return hierarchy


def goal_path(goal_id: str, goals: list[GoalRecord]) -> list[GoalRecord]:
    """Chain of goals from the root down to ``goal_id``.

    Stops at a missing parent or a cycle, so it always terminates.
    """
    by_id = {g.id: g for g in goals}
    path: list[GoalRecord] = []
    seen: set[str] = set()
    current = by_id.get(goal_id)
    while current is not None and current.id not in seen:
        seen.add(current.id)
        path.append(current)
        current = by_id.get(current.parent_goal_id) if current.parent_goal_id else None
    path.reverse()
    return path


def goal_depth(goal_id: str, goals: list[GoalRecord]) -> int:
    """Nesting depth of a goal (0 for top-level or unknown goals)."""
    return max(len(goal_path(goal_id, goals)) - 1, 0)
