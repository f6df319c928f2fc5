"""Task endpoints: CRUD, ownership scoping, listing and stats."""
import math

import pytest


def create(client, who, **fields):
    r = client.post("/api/tasks", json=fields, headers=who["headers"])
    assert r.status_code == 201, r.text
    return r.json()["task"]


def test_walkthrough(client, ann):
    task = create(client, ann, title="Buy milk")
    assert task["status"] == "todo"
    assert task["priority"] == "medium"
    assert task["tags"] == []
    assert task["user"] == ann["user"]["id"]

    r = client.get("/api/tasks", params={"status": "todo"}, headers=ann["headers"])
    assert [t["id"] for t in r.json()["tasks"]] == [task["id"]]

    r = client.put(f"/api/tasks/{task['id']}", json={"status": "done"}, headers=ann["headers"])
    assert r.status_code == 200
    assert r.json()["task"]["status"] == "done"
    assert r.json()["task"]["title"] == "Buy milk"

    stats = client.get("/api/tasks/stats/summary", headers=ann["headers"]).json()
    assert stats["summary"]["done"] == 1
    assert stats["summary"]["todo"] == 0
    assert stats["summary"]["total"] == 1

    r = client.delete(f"/api/tasks/{task['id']}", headers=ann["headers"])
    assert r.status_code == 200
    assert r.json() == {"success": True, "message": "Task deleted successfully."}

    r = client.get(f"/api/tasks/{task['id']}", headers=ann["headers"])
    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "Task not found."}


def test_owner_comes_from_token_not_body(client, ann, bob):
    task = create(client, ann, title="Mine", user=bob["user"]["id"], user_id=bob["user"]["id"])
    assert task["user"] == ann["user"]["id"]


def test_other_user_cannot_touch_task(client, ann, bob):
    task = create(client, ann, title="Private")
    url = f"/api/tasks/{task['id']}"

    assert client.get(url, headers=bob["headers"]).status_code == 404
    assert client.put(url, json={"title": "Hijacked"}, headers=bob["headers"]).status_code == 404
    assert client.delete(url, headers=bob["headers"]).status_code == 404

    r = client.get(url, headers=ann["headers"])
    assert r.json()["task"]["title"] == "Private"
    assert client.get("/api/tasks", headers=bob["headers"]).json()["pagination"]["total"] == 0


def test_missing_and_foreign_look_the_same(client, ann, bob):
    task = create(client, ann, title="Private")
    foreign = client.get(f"/api/tasks/{task['id']}", headers=bob["headers"])
    missing = client.get("/api/tasks/0123456789abcdef01234567", headers=bob["headers"])
    assert foreign.status_code == missing.status_code == 404
    assert foreign.json() == missing.json()


def test_malformed_id_is_not_found(client, ann):
    assert client.get("/api/tasks/not-an-id", headers=ann["headers"]).status_code == 404


def test_delete_twice(client, ann):
    task = create(client, ann, title="Once")
    assert client.delete(f"/api/tasks/{task['id']}", headers=ann["headers"]).status_code == 200
    assert client.delete(f"/api/tasks/{task['id']}", headers=ann["headers"]).status_code == 404


def test_update_only_changes_supplied_fields(client, ann):
    task = create(
        client, ann,
        title="Report", description="quarterly", priority="high",
        dueDate="2030-01-15T09:00:00Z", tags=["work"],
    )
    r = client.put(f"/api/tasks/{task['id']}", json={"description": "annual"}, headers=ann["headers"])
    updated = r.json()["task"]
    assert updated["description"] == "annual"
    assert updated["title"] == "Report"
    assert updated["priority"] == "high"
    assert updated["tags"] == ["work"]
    assert updated["dueDate"].startswith("2030-01-15T09:00:00")
    assert updated["createdAt"] == task["createdAt"]


def test_update_can_clear_due_date(client, ann):
    task = create(client, ann, title="Dated", dueDate="2030-01-15")
    r = client.put(f"/api/tasks/{task['id']}", json={"dueDate": None}, headers=ann["headers"])
    assert r.json()["task"]["dueDate"] is None


def test_create_validation(client, ann, mongo_db):
    r = client.post(
        "/api/tasks",
        json={
            "title": "   ",
            "description": "d" * 501,
            "status": "later",
            "dueDate": "next tuesday",
            "tags": ["a", "b", "c", "d", "e", "f"],
        },
        headers=ann["headers"],
    )
    assert r.status_code == 400
    errors = {e["field"]: e["message"] for e in r.json()["errors"]}
    assert errors["title"] == "Title is required"
    assert errors["description"] == "Description cannot exceed 500 characters"
    assert "status" in errors
    assert errors["dueDate"] == "Invalid date format"
    assert errors["tags"] == "A task can have at most 5 tags"
    assert mongo_db["task"].count_documents({}) == 0


def test_title_length_limit(client, ann):
    r = client.post("/api/tasks", json={"title": "t" * 101}, headers=ann["headers"])
    assert r.status_code == 400
    assert r.json()["errors"] == [{"field": "title", "message": "Title cannot exceed 100 characters"}]


def test_tags_are_deduplicated(client, ann):
    task = create(client, ann, title="Tagged", tags=["home", " home", "x", "y", "z", "x", "w"])
    assert task["tags"] == ["home", "x", "y", "z", "w"]


def test_update_rejects_null_title(client, ann):
    task = create(client, ann, title="Keep")
    r = client.put(f"/api/tasks/{task['id']}", json={"title": None}, headers=ann["headers"])
    assert r.status_code == 400
    assert r.json()["errors"][0]["field"] == "title"


def test_pagination_covers_every_task(client, ann):
    for i in range(23):
        create(client, ann, title=f"task {i:02d}")

    seen = []
    page = 1
    while True:
        r = client.get("/api/tasks", params={"page": page, "limit": 5}, headers=ann["headers"])
        body = r.json()
        assert body["pagination"]["total"] == 23
        assert body["pagination"]["pages"] == math.ceil(23 / 5)
        assert body["pagination"]["limit"] == 5
        if not body["tasks"]:
            break
        seen.extend(t["id"] for t in body["tasks"])
        page += 1

    assert page - 1 == 5
    assert len(seen) == len(set(seen)) == 23


def test_empty_list_has_zero_pages(client, ann):
    body = client.get("/api/tasks", headers=ann["headers"]).json()
    assert body["tasks"] == []
    assert body["pagination"] == {"total": 0, "page": 1, "pages": 0, "limit": 10}


def test_search_matches_title_description_and_tags(client, ann):
    a = create(client, ann, title="Groceries")
    b = create(client, ann, title="Call", description="ask about GROCERY budget")
    c = create(client, ann, title="Plan", tags=["groceries"])
    create(client, ann, title="Unrelated")

    r = client.get("/api/tasks", params={"search": "grocer"}, headers=ann["headers"])
    assert {t["id"] for t in r.json()["tasks"]} == {a["id"], b["id"], c["id"]}


def test_search_is_literal_text(client, ann):
    create(client, ann, title="a+b")
    create(client, ann, title="aab")
    r = client.get("/api/tasks", params={"search": "a+b"}, headers=ann["headers"])
    assert [t["title"] for t in r.json()["tasks"]] == ["a+b"]


def test_filter_by_priority_and_status(client, ann):
    create(client, ann, title="one", priority="high")
    create(client, ann, title="two", priority="high", status="done")
    create(client, ann, title="three", priority="low")
    r = client.get("/api/tasks", params={"priority": "high", "status": "done"}, headers=ann["headers"])
    assert [t["title"] for t in r.json()["tasks"]] == ["two"]


def test_sort_by_priority_uses_severity(client, ann):
    create(client, ann, title="m", priority="medium")
    create(client, ann, title="h", priority="high")
    create(client, ann, title="l", priority="low")
    r = client.get("/api/tasks", params={"sortBy": "priority", "order": "desc"}, headers=ann["headers"])
    assert [t["title"] for t in r.json()["tasks"]] == ["h", "m", "l"]


def test_sort_ties_follow_insertion_order(client, ann):
    for name in ["first", "second", "third"]:
        create(client, ann, title=name, priority="low")
    for order in ("asc", "desc"):
        r = client.get("/api/tasks", params={"sortBy": "priority", "order": order}, headers=ann["headers"])
        assert [t["title"] for t in r.json()["tasks"]] == ["first", "second", "third"]


def test_sort_by_title_and_due_date(client, ann):
    create(client, ann, title="banana", dueDate="2030-03-01")
    create(client, ann, title="apple", dueDate="2030-05-01")
    create(client, ann, title="cherry", dueDate="2030-01-01")

    r = client.get("/api/tasks", params={"sortBy": "title", "order": "asc"}, headers=ann["headers"])
    assert [t["title"] for t in r.json()["tasks"]] == ["apple", "banana", "cherry"]

    r = client.get("/api/tasks", params={"sortBy": "dueDate", "order": "asc"}, headers=ann["headers"])
    assert [t["title"] for t in r.json()["tasks"]] == ["cherry", "banana", "apple"]


@pytest.mark.parametrize(
    "params, field",
    [
        ({"status": "someday"}, "status"),
        ({"priority": "urgent"}, "priority"),
        ({"page": 0}, "page"),
        ({"limit": 101}, "limit"),
        ({"sortBy": "owner"}, "sortBy"),
        ({"order": "sideways"}, "order"),
    ],
)
def test_list_query_validation(client, ann, params, field):
    r = client.get("/api/tasks", params=params, headers=ann["headers"])
    assert r.status_code == 400
    assert r.json()["success"] is False
    assert r.json()["errors"][0]["field"] == field


def test_stats_match_list_total(client, ann, bob):
    create(client, ann, title="a", status="todo", priority="low")
    create(client, ann, title="b", status="in-progress", priority="high")
    create(client, ann, title="c", status="in-progress", priority="high")
    create(client, bob, title="not counted")

    stats = client.get("/api/tasks/stats/summary", headers=ann["headers"]).json()
    assert stats["success"] is True
    assert stats["summary"] == {"todo": 1, "in-progress": 2, "done": 0, "total": 3}
    assert stats["priority"] == {"low": 1, "medium": 0, "high": 2}

    listed = client.get("/api/tasks", headers=ann["headers"]).json()
    assert listed["pagination"]["total"] == stats["summary"]["total"]


def test_stats_for_new_user_are_zero(client, ann):
    stats = client.get("/api/tasks/stats/summary", headers=ann["headers"]).json()
    assert stats["summary"] == {"todo": 0, "in-progress": 0, "done": 0, "total": 0}
    assert stats["priority"] == {"low": 0, "medium": 0, "high": 0}


def test_tasks_require_auth(client):
    assert client.get("/api/tasks").status_code == 401
    assert client.post("/api/tasks", json={"title": "x"}).status_code == 401
    assert client.get("/api/tasks/stats/summary").status_code == 401


def test_missing_title_reports_title_required(client, ann):
    r = client.post("/api/tasks", json={"description": "no title"}, headers=ann["headers"])
    assert r.status_code == 400
    assert r.json()["errors"] == [{"field": "title", "message": "Title is required"}]
