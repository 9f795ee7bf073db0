from __future__ import annotations

import copy
from collections.abc import Iterable
from typing import Any

GROUP_ADMINISTRATION = "Administration"
GROUP_CURRICULUM = "Curriculum"
GROUP_STAFF = "Staff"
GROUP_STUDENTS = "Students"

ALL_GROUPS = [GROUP_ADMINISTRATION, GROUP_CURRICULUM, GROUP_STAFF, GROUP_STUDENTS]


def _crud(singular: str, plural: str) -> list[str]:
    return [f"Create {singular}", f"View {plural}", f"Edit {singular}", f"Delete {singular}"]


TAB_ACTIONS: dict[str, dict[str, list[str]]] = {
    GROUP_ADMINISTRATION: {
        "Roles & Permissions": _crud("Role", "Roles"),
        "Users": _crud("User", "Users"),
        "Activity Logs": ["View Activity Logs"],
        "Billing": ["View Billings"],
    },
    GROUP_CURRICULUM: {
        "Programmes": [
            *_crud("Programme", "Programmes"),
            *_crud("Programme Manager", "Programme Managers"),
        ],
        "Courses": [
            *_crud("Course", "Courses"),
            *_crud("Course Manager", "Course Managers"),
        ],
        "Levels": [
            *_crud("Level", "Levels"),
            *_crud("Level Manager", "Level Managers"),
        ],
        "Subjects": [
            *_crud("Subject", "Subjects"),
            *_crud("Subject Teacher", "Subject Teachers"),
        ],
        "Learning Plan": [
            *_crud("Syllabus", "Syllabuses"),
            *_crud("Topic", "Topics"),
        ],
    },
    GROUP_STAFF: {
        "Staff Profiles": _crud("Staff Profile", "Staff Profiles"),
        "Staff Contracts": _crud("Staff Contract", "Staff Contracts"),
    },
    GROUP_STUDENTS: {
        "Student Profiles": _crud("Student Profile", "Student Profiles"),
    },
}

NEEDED_ACCESSES: dict[str, list[str]] = {
    "All Programmes": [
        "View Programmes",
        "View Courses",
        "View Levels",
        "View Subjects",
        "View Programme Managers",
        "View Course Managers",
    ],
    "All Courses": [
        "View Courses",
        "View Levels",
        "View Subjects",
        "View Course Managers",
        "View Level Managers",
    ],
    "All Levels": ["View Levels", "View Subjects", "View Level Managers", "View Subject Teachers"],
    "All Subjects": ["View Subjects", "View Syllabuses", "View Subject Teachers"],
    "All Syllabuses": ["View Syllabuses", "View Topics"],
    "All Topics": ["View Topics", "View Syllabuses"],
    "All Staff Profiles": [
        "View Staff Profiles",
        "View Staff Contracts",
        "View Users",
        "View Programme Managers",
        "View Course Managers",
        "View Level Managers",
        "View Subject Teachers",
    ],
    "All Staff Contracts": ["View Staff Contracts", "View Staff Profiles"],
    "All Student Profiles": ["View Student Profiles", "View Users"],
}


def default_tab_access() -> list[dict[str, Any]]:
    """Full access tree with every action granted."""
    return [
        {
            "group": group,
            "tabs": [
                {
                    "tab": tab,
                    "group": group,
                    "actions": [{"action": action, "permission": True} for action in actions],
                }
                for tab, actions in tabs.items()
            ],
        }
        for group, tabs in TAB_ACTIONS.items()
    ]


def all_actions() -> list[str]:
    return [action for tabs in TAB_ACTIONS.values() for actions in tabs.values() for action in actions]


def _iter_tabs(items: Any) -> Iterable[dict[str, Any]]:
    if not isinstance(items, list):
        return
    for item in items:
        if not isinstance(item, dict):
            continue
        tabs = item.get("tabs")
        if isinstance(tabs, list):
            yield from (tab for tab in tabs if isinstance(tab, dict))
        elif "actions" in item:
            yield item


def permitted_actions(
    role_tab_access: list[dict[str, Any]] | None,
    unique_tab_access: list[dict[str, Any]] | None,
) -> list[str]:
    """Merge role group access and account-specific tabs into granted action names.

    Role access is grouped (``[{group, tabs: [...]}]``); per-account access is
    a flat list of tabs. Either shape is accepted on both sides.
    """
    merged = [*_iter_tabs(role_tab_access or []), *_iter_tabs(unique_tab_access or [])]
    permitted: list[str] = []
    for tab in merged:
        actions = tab.get("actions")
        if not isinstance(actions, list):
            continue
        for item in actions:
            if not isinstance(item, dict) or item.get("permission") is not True:
                continue
            name = item.get("action", item.get("name"))
            if isinstance(name, str) and name not in permitted:
                permitted.append(name)
    return permitted


def check_access(
    role_tab_access: list[dict[str, Any]] | None,
    unique_tab_access: list[dict[str, Any]] | None,
    action: str,
) -> bool:
    return action in permitted_actions(role_tab_access, unique_tab_access)


def check_accesses(
    role_tab_access: list[dict[str, Any]] | None,
    unique_tab_access: list[dict[str, Any]] | None,
    actions: list[str],
) -> bool:
    granted = set(permitted_actions(role_tab_access, unique_tab_access))
    return any(action in granted for action in actions)


def needed_accesses(route_key: str) -> list[str]:
    return list(NEEDED_ACCESSES.get(route_key, []))


def normalize_tab_access(tab_access: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Drop unknown actions and coerce permission flags to booleans."""
    known = set(all_actions())
    normalized: list[dict[str, Any]] = []
    for item in copy.deepcopy(tab_access):
        if not isinstance(item, dict):
            continue
        if isinstance(item.get("tabs"), list):
            item["tabs"] = [_normalize_tab(tab, known) for tab in item["tabs"] if isinstance(tab, dict)]
            normalized.append(item)
        elif "actions" in item:
            normalized.append(_normalize_tab(item, known))
    return normalized


def _normalize_tab(tab: dict[str, Any], known: set[str]) -> dict[str, Any]:
    actions = tab.get("actions") if isinstance(tab.get("actions"), list) else []
    tab["actions"] = [
        {"action": item.get("action", item.get("name")), "permission": item.get("permission") is True}
        for item in actions
        if isinstance(item, dict) and item.get("action", item.get("name")) in known
    ]
    return tab
