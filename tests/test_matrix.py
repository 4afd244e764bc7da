"""Unit tests for the in-memory todo matrix."""

import random
from datetime import datetime

import pytest

from thoughts.errors import NotFoundError, ValidationError
from thoughts.matrix import (
    QUADRANTS,
    TodoMatrix,
    active_todos,
    add_todo,
    create_todo,
    delete_todo,
    find_todo,
    generate_display_id,
    get_todo,
    is_display_id,
    quadrant_of,
    resolve_display_id,
    resolve_id,
    search_todos,
    toggle_todo,
    update_todo,
)


def titles(todos):
    return [todo.title for todo in todos]


class TestCreateTodo:
    """Test cases for todo construction."""

    def test_defaults(self):
        todo = create_todo("  Buy milk  ")

        assert todo.title == "Buy milk"
        assert todo.description == ""
        assert todo.priority == "low"
        assert todo.urgency == "not-urgent"
        assert todo.completed is False
        assert todo.completed_at is None
        assert todo.tags == []
        assert todo.links == []
        assert todo.metadata == {}
        assert todo.created_at
        assert todo.quadrant == "not_important_not_urgent"

    def test_ids_are_unique(self):
        ids = {create_todo("Same title").id for _ in range(50)}
        assert len(ids) == 50

    @pytest.mark.parametrize("title", ["", "   ", "\n\t"])
    def test_empty_title_rejected(self, title):
        with pytest.raises(ValidationError):
            create_todo(title)

    def test_invalid_priority_rejected(self):
        with pytest.raises(ValidationError, match="priority"):
            create_todo("Task", priority="medium")

    def test_invalid_urgency_rejected(self):
        with pytest.raises(ValidationError, match="urgency"):
            create_todo("Task", urgency="soon")

    def test_unknown_option_rejected(self):
        with pytest.raises(ValidationError, match="due_date"):
            create_todo("Task", due_date="2026-01-01")

    def test_completed_on_creation_gets_timestamp(self):
        todo = create_todo("Done already", completed=True)
        assert todo.completed_at is not None

    def test_serializes_with_camel_case_keys(self):
        data = create_todo("Task").model_dump(by_alias=True)

        assert "createdAt" in data
        assert "completedAt" in data
        assert data["completedAt"] is None
        assert set(data) == {
            "id", "title", "description", "priority", "urgency", "completed",
            "createdAt", "completedAt", "tags", "links", "metadata",
        }


class TestQuadrants:
    """Test cases for quadrant classification."""

    @pytest.mark.parametrize("priority,urgency,expected", [
        ("high", "urgent", "important_urgent"),
        ("high", "not-urgent", "important_not_urgent"),
        ("low", "urgent", "not_important_urgent"),
        ("low", "not-urgent", "not_important_not_urgent"),
    ])
    def test_quadrant_table(self, priority, urgency, expected):
        assert quadrant_of(priority, urgency) == expected

    def test_add_places_todo_in_its_quadrant(self):
        m = TodoMatrix()
        todo = create_todo("Fire", priority="high", urgency="urgent")

        add_todo(m, todo)

        assert m.important_urgent == [todo]
        assert find_todo(m, todo.id) == ("important_urgent", 0)

    def test_add_duplicate_id_rejected(self):
        m = TodoMatrix()
        todo = create_todo("Once")
        add_todo(m, todo)

        with pytest.raises(ValidationError):
            add_todo(m, create_todo("Twice", id=todo.id))


class TestUpdate:
    """Test cases for patching and reclassification."""

    def test_update_in_place_keeps_position(self, matrix):
        target = matrix.important_not_urgent[1]

        update_todo(matrix, target.id, {"title": "Write the design doc", "tags": ["docs"]})

        assert matrix.important_not_urgent[1].id == target.id
        assert matrix.important_not_urgent[1].title == "Write the design doc"
        assert matrix.important_not_urgent[1].tags == ["docs"]

    def test_reclassification_moves_to_end_of_new_quadrant(self):
        m = TodoMatrix()
        first = create_todo("First", priority="high", urgency="urgent")
        second = create_todo("Second", priority="high", urgency="urgent")
        third = create_todo("Third", priority="high", urgency="urgent")
        existing_c = create_todo("Already in C", priority="low", urgency="urgent")
        for todo in (first, second, third, existing_c):
            add_todo(m, todo)
        assert generate_display_id(m, second) == "A2"

        updated = update_todo(m, second.id, {"priority": "low"})

        assert titles(m.important_urgent) == ["First", "Third"]
        assert titles(m.not_important_urgent) == ["Already in C", "Second"]
        assert generate_display_id(m, updated) == "C2"
        assert generate_display_id(m, third) == "A2"

    def test_update_by_display_id(self, matrix):
        update_todo(matrix, "b2", {"description": "outline first"})
        assert matrix.important_not_urgent[1].description == "outline first"

    def test_update_unknown_id(self, matrix):
        with pytest.raises(NotFoundError):
            update_todo(matrix, "no-such-id", {"title": "x"})

    def test_update_unknown_display_id(self, matrix):
        with pytest.raises(NotFoundError):
            update_todo(matrix, "D9", {"title": "x"})

    def test_update_rejects_immutable_fields(self, matrix):
        todo = matrix.important_urgent[0]
        with pytest.raises(ValidationError):
            update_todo(matrix, todo.id, {"id": "other"})
        with pytest.raises(ValidationError):
            update_todo(matrix, todo.id, {"created_at": "2000-01-01T00:00:00+00:00"})

    def test_update_rejects_blank_title(self, matrix):
        todo = matrix.important_urgent[0]
        with pytest.raises(ValidationError):
            update_todo(matrix, todo.id, {"title": "   "})
        assert matrix.important_urgent[0].title == "Ship the release"

    def test_update_rejects_bad_priority_without_mutation(self, matrix):
        todo = matrix.important_urgent[0]
        with pytest.raises(ValidationError):
            update_todo(matrix, todo.id, {"priority": "urgent"})
        assert matrix.important_urgent[0].priority == "high"

    def test_completing_sets_timestamp(self, matrix):
        todo = matrix.important_urgent[0]

        updated = update_todo(matrix, todo.id, {"completed": True})

        assert updated.completed is True
        assert updated.completed_at is not None

    def test_completing_twice_keeps_first_timestamp(self, matrix):
        todo = matrix.important_urgent[0]
        first = update_todo(matrix, todo.id, {"completed": True}).completed_at

        again = update_todo(matrix, todo.id, {"completed": True})

        assert again.completed_at == first

    def test_reopening_clears_timestamp(self, matrix):
        todo = matrix.important_urgent[0]
        update_todo(matrix, todo.id, {"completed": True})

        updated = update_todo(matrix, todo.id, {"completed": False})

        assert updated.completed is False
        assert updated.completed_at is None


class TestToggleAndDelete:
    """Test cases for toggle and delete."""

    def test_completion_timestamp_law(self, matrix):
        todo = matrix.not_important_urgent[0]

        toggled = toggle_todo(matrix, todo.id)
        assert toggled.completed is True
        assert toggled.completed_at is not None
        assert datetime.fromisoformat(toggled.completed_at) >= datetime.fromisoformat(toggled.created_at)

        toggled = toggle_todo(matrix, todo.id)
        assert toggled.completed is False
        assert toggled.completed_at is None

    def test_toggle_never_moves(self, matrix):
        todo = matrix.important_not_urgent[1]
        toggle_todo(matrix, "B2")
        assert find_todo(matrix, todo.id) == ("important_not_urgent", 1)

    def test_toggle_unknown(self, matrix):
        with pytest.raises(NotFoundError):
            toggle_todo(matrix, "missing")

    def test_delete_shifts_display_ids(self, matrix):
        b1, b2, b3 = matrix.important_not_urgent
        assert generate_display_id(matrix, b2) == "B2"

        deleted = delete_todo(matrix, "B1")

        assert deleted.id == b1.id
        assert generate_display_id(matrix, b2) == "B1"
        assert generate_display_id(matrix, b3) == "B2"
        assert resolve_display_id(matrix, "B3") is None

    def test_delete_unknown(self, matrix):
        with pytest.raises(NotFoundError):
            delete_todo(matrix, "missing")

    def test_active_todos(self, matrix):
        toggle_todo(matrix, "A1")
        assert "Ship the release" not in titles(active_todos(matrix))
        assert len(active_todos(matrix)) == 5


class TestDisplayIds:
    """Test cases for positional short ids."""

    @pytest.mark.parametrize("value,expected", [
        ("A1", True), ("d12", True), ("B0", True),
        ("E1", False), ("A", False), ("1A", False), ("A1x", False), ("", False),
    ])
    def test_is_display_id(self, value, expected):
        assert is_display_id(value) is expected

    def test_round_trip(self, matrix):
        for todo in matrix.iter_todos():
            assert resolve_display_id(matrix, generate_display_id(matrix, todo)) == todo.id

    def test_resolution_is_case_insensitive(self, matrix):
        assert resolve_display_id(matrix, "b3") == matrix.important_not_urgent[2].id

    @pytest.mark.parametrize("display_id", ["B0", "B4", "E1", "Z9", "C-1", "garbage"])
    def test_unresolvable(self, matrix, display_id):
        assert resolve_display_id(matrix, display_id) is None

    def test_fallback_for_misplaced_todo(self, matrix):
        todo = matrix.important_urgent[0]
        # Simulate an inconsistent matrix: fields say D, sequence says A
        todo.priority = "low"
        todo.urgency = "not-urgent"
        assert generate_display_id(matrix, todo) == todo.id[:8]

    def test_resolve_id_passes_stable_ids_through(self, matrix):
        todo = matrix.important_urgent[0]
        assert resolve_id(matrix, todo.id) == todo.id
        assert resolve_id(matrix, "A1") == todo.id

    def test_resolve_id_raises_for_dangling_display_id(self, matrix):
        with pytest.raises(NotFoundError):
            resolve_id(matrix, "A2")

    def test_get_todo_by_display_id(self, matrix):
        assert get_todo(matrix, "d1").title == "Sort photos"


class TestSearch:
    """Test cases for search filters."""

    def test_conjunction_of_text_and_completed(self):
        m = TodoMatrix()
        login = create_todo("Fix login bug", tags=["bug"])
        payment = create_todo("Fix payment bug", tags=["bug"], completed=True)
        add_todo(m, login)
        add_todo(m, payment)

        results = search_todos(m, text="bug", completed=False)

        assert [todo.id for todo in results] == [login.id]

    def test_text_matches_description_case_insensitively(self, matrix):
        update_todo(matrix, "C1", {"description": "Reply to the RECRUITER email"})
        assert titles(search_todos(matrix, text="recruiter email")) == ["Answer recruiter"]

    def test_tags_match_any(self, matrix):
        update_todo(matrix, "A1", {"tags": ["work"]})
        update_todo(matrix, "D1", {"tags": ["home"]})
        results = search_todos(matrix, tags=["home", "garden"])
        assert titles(results) == ["Sort photos"]

    def test_priority_and_urgency(self, matrix):
        assert titles(search_todos(matrix, priority="high", urgency="not-urgent")) == [
            "Plan Q3 roadmap", "Write design doc", "Read paper",
        ]

    def test_no_criteria_returns_everything_in_traversal_order(self, matrix):
        assert titles(search_todos(matrix)) == titles(matrix.iter_todos())


class TestInvariantsUnderRandomOperations:
    """Random add/update/toggle/delete sequences never break the matrix."""

    def check_invariants(self, m):
        ids = []
        for key in QUADRANTS:
            for todo in m.quadrant(key):
                assert todo.quadrant == key
                ids.append(todo.id)
        assert len(ids) == len(set(ids))

    @pytest.mark.parametrize("seed", range(10))
    def test_random_operations(self, seed):
        rng = random.Random(seed)
        m = TodoMatrix()

        for step in range(200):
            todos = list(m.iter_todos())
            op = rng.choice(["add", "add", "update", "toggle", "delete"])

            if op == "add" or not todos:
                add_todo(m, create_todo(
                    f"Todo {step}",
                    priority=rng.choice(["high", "low"]),
                    urgency=rng.choice(["urgent", "not-urgent"]),
                ))
            elif op == "update":
                target = rng.choice(todos)
                ref = rng.choice([target.id, generate_display_id(m, target)])
                update_todo(m, ref, {
                    "priority": rng.choice(["high", "low"]),
                    "urgency": rng.choice(["urgent", "not-urgent"]),
                })
            elif op == "toggle":
                toggle_todo(m, rng.choice(todos).id)
            else:
                delete_todo(m, rng.choice(todos).id)

            self.check_invariants(m)
