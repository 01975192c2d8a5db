from datetime import timedelta

import pytest
from sqlalchemy.dialects import sqlite

from task_api.errors import ValidationError
from task_api.models import TaskPriority, TaskStatus
from task_api.schemas.task import SortField, SortOrder, TaskQuery
from task_api.services.queries import build_count_query, build_list_query, order_by_clause
from task_api.services.tasks import list_tasks

from .conftest import NOW


def _titles(page):
    return [task.title for task in page.tasks]


def test_empty_store_returns_empty_page(db):
    page = list_tasks(db, TaskQuery())

    assert page.tasks == []
    assert page.total == 0
    assert page.pagination.total_pages == 0
    assert page.pagination.has_next_page is False
    assert page.pagination.has_prev_page is False


def test_default_order_is_newest_first(db, make_task):
    make_task("old", created_at=NOW)
    make_task("new", created_at=NOW + timedelta(hours=1))

    assert _titles(list_tasks(db, TaskQuery())) == ["new", "old"]


def test_filters_are_conjunctive(db, make_task):
    make_task("pending high", status=TaskStatus.PENDING, priority=TaskPriority.HIGH)
    make_task("pending low", status=TaskStatus.PENDING, priority=TaskPriority.LOW)
    make_task("completed high", status=TaskStatus.COMPLETED, priority=TaskPriority.HIGH)

    page = list_tasks(db, TaskQuery(status="pending", priority="high"))

    assert _titles(page) == ["pending high"]
    assert page.total == 1


def test_user_filter(db, make_task, make_user):
    owner = make_user("alice")
    make_task("mine", user_id=owner.id)
    make_task("unowned")

    page = list_tasks(db, TaskQuery(user_id=owner.id))

    assert _titles(page) == ["mine"]


def test_search_matches_title_or_description_case_insensitively(db, make_task):
    make_task("Complete project documentation")
    make_task("Plan sprint", description="Collect DOCS links")
    make_task("Buy milk", description="2% please")

    page = list_tasks(db, TaskQuery(search="doc", sort_field="title", sort_order="asc"))

    assert _titles(page) == ["Complete project documentation", "Plan sprint"]


def test_search_combines_with_filters(db, make_task):
    make_task("Doc review", status=TaskStatus.COMPLETED)
    make_task("Doc draft", status=TaskStatus.PENDING)

    page = list_tasks(db, TaskQuery(search="doc", status="pending"))

    assert _titles(page) == ["Doc draft"]


def test_search_wildcards_match_literally(db, make_task):
    make_task("Raise coverage to 100%")
    make_task("Raise coverage to 1000")

    page = list_tasks(db, TaskQuery(search="100%"))

    assert _titles(page) == ["Raise coverage to 100%"]


def test_blank_search_is_ignored(db, make_task):
    make_task("a")
    make_task("b")

    assert list_tasks(db, TaskQuery(search="   ")).total == 2


def test_search_drops_angle_brackets(db, make_task):
    make_task("read docs")
    make_task("lunch")

    assert TaskQuery(search=" <docs> ").search == "docs"
    assert _titles(list_tasks(db, TaskQuery(search="<docs>"))) == ["read docs"]


def test_soft_deleted_tasks_are_excluded(db, make_task):
    make_task("visible")
    make_task("gone", deleted=True)

    page = list_tasks(db, TaskQuery())

    assert _titles(page) == ["visible"]
    assert page.total == 1


def test_total_counts_filtered_rows_not_page(db, make_task):
    for i in range(25):
        make_task(f"task {i:02d}", priority=TaskPriority.HIGH if i % 2 else TaskPriority.LOW)

    page = list_tasks(db, TaskQuery(priority="high", limit=5, page=2))

    assert len(page.tasks) == 5
    assert page.total == 12
    assert page.pagination.total_items == 12
    assert page.pagination.total_pages == 3
    assert page.pagination.current_page == 2
    assert page.pagination.items_per_page == 5
    assert page.pagination.has_next_page is True
    assert page.pagination.has_prev_page is True


def test_pages_do_not_overlap(db, make_task):
    for i in range(25):
        make_task(f"task {i:02d}")

    seen = []
    for page_number in (1, 2, 3):
        page = list_tasks(db, TaskQuery(page=page_number, limit=10, sort_field="title", sort_order="asc"))
        seen.extend(_titles(page))

    assert seen == [f"task {i:02d}" for i in range(25)]


def test_priority_sorts_by_rank(db, make_task):
    make_task("m", priority=TaskPriority.MEDIUM)
    make_task("h", priority=TaskPriority.HIGH)
    make_task("l", priority=TaskPriority.LOW)

    asc = list_tasks(db, TaskQuery(sort_field="priority", sort_order="asc"))
    desc = list_tasks(db, TaskQuery(sort_field="priority", sort_order="DESC"))

    assert _titles(asc) == ["l", "m", "h"]
    assert _titles(desc) == ["h", "m", "l"]


def test_status_sorts_pending_first_ascending(db, make_task):
    make_task("done", status=TaskStatus.COMPLETED)
    make_task("todo", status=TaskStatus.PENDING)

    assert _titles(list_tasks(db, TaskQuery(sort_field="status", sort_order="asc"))) == ["todo", "done"]


def test_owner_summary_is_joined(db, make_task, make_user):
    owner = make_user("bob", first_name="Bob", last_name="Builder")
    make_task("owned", user_id=owner.id)

    task = list_tasks(db, TaskQuery()).tasks[0]

    assert task.user is not None
    assert task.user.model_dump() == {
        "id": owner.id,
        "username": "bob",
        "first_name": "Bob",
        "last_name": "Builder",
    }
    assert "password" not in task.user.model_dump()


def test_soft_deleted_owner_is_not_joined(db, make_task, make_user):
    owner = make_user("ghost", deleted=True)
    make_task("orphan-ish", user_id=owner.id)

    task = list_tasks(db, TaskQuery()).tasks[0]

    assert task.user_id == owner.id
    assert task.user is None


def test_unknown_sort_field_is_rejected():
    with pytest.raises(ValidationError):
        order_by_clause("title; DROP TABLE tasks", SortOrder.ASC)


def test_queries_bind_user_input():
    criteria = TaskQuery(search="x' OR 1=1 --", status="pending", sort_field=SortField.DUE_DATE)

    list_sql = str(build_list_query(criteria).compile(dialect=sqlite.dialect()))
    count_sql = str(build_count_query(criteria).compile(dialect=sqlite.dialect()))

    assert "OR 1=1" not in list_sql
    assert "OR 1=1" not in count_sql
    assert "tasks.deleted_at IS NULL" in count_sql
    assert "ORDER BY tasks.due_date DESC" in list_sql
