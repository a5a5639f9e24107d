from __future__ import annotations

from core.services.permissions import (
    group_permissions_by_module,
    is_system_role,
    role_description,
    role_display_name,
)


def test_groups_by_first_segment_in_order():
    grouped = group_permissions_by_module(
        ["tasks.view", "products.manage", "tasks.agenda.view", "tasks.manage"]
    )
    assert list(grouped) == ["tasks", "products"]
    assert grouped["tasks"] == ["tasks.view", "tasks.agenda.view", "tasks.manage"]


def test_permissions_without_module_are_dropped():
    assert group_permissions_by_module([".view", "", "users.view"]) == {"users": ["users.view"]}


def test_permission_without_dot_is_its_own_module():
    assert group_permissions_by_module(["*"]) == {"*": ["*"]}


def test_system_roles():
    assert is_system_role("owner")
    assert is_system_role("admin")
    assert not is_system_role("manager")


def test_role_labels_fall_back_to_raw_name():
    assert role_display_name("viewer") == "Visualizador"
    assert role_display_name("auditor") == "auditor"
    assert role_description("auditor") == ""
