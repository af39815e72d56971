import datetime
from unittest.mock import MagicMock

import pytest

from canvas_trello_sync.config import CanvasConfig, Mapping, SyncConfig, TrelloConfig
from canvas_trello_sync.exceptions import RemoteError
from canvas_trello_sync.models.canvas import Assignment
from canvas_trello_sync.models.sync import CreateCard
from canvas_trello_sync.models.trello import (
    BoardList,
    BoardSnapshot,
    Card,
    CustomFieldDef,
    CustomFieldItem,
    Label,
    TextValue,
)
from canvas_trello_sync.services.canvas import parse_timestamp


UTC = datetime.timezone.utc
DUE = datetime.datetime(2024, 1, 1, tzinfo=UTC)

CONFIG_TOML = """
[trello]
board_id = "board1"
add_to_list = "To Do"

[canvas]
graphql_endpoint = "https://canvas.example.edu/api/graphql"

[[mapping]]
canvas_course_id = "123"
trello_label_name = "CS 101"

[[mapping]]
canvas_course_id = "456"
trello_label_name = "MATH 200"
"""

# --- Canned API responses ---

CANVAS_ASSIGNMENT_NODE = {
    "_id": "1",
    "name": "HW1",
    "description": "<p>Read <strong>chapter 1</strong></p>",
    "dueAt": "2024-01-01T00:00:00Z",
    "htmlUrl": "http://lms/a/1",
    "expectsSubmission": True,
    "submissionsConnection": {"nodes": []},
}

CANVAS_ASSIGNMENTS_RESPONSE = {
    "data": {
        "course": {
            "id": "Q291cnNlLTEyMw==",
            "assignmentsConnection": {"nodes": [CANVAS_ASSIGNMENT_NODE]},
        }
    }
}

TRELLO_CARD = {
    "id": "card1",
    "name": "HW1",
    "desc": "🔄 Canvas Trello Sync",
    "due": "2024-01-01T00:00:00.000Z",
    "dueComplete": False,
    "idList": "list1",
    "idLabels": ["label1"],
    "customFieldItems": [
        {
            "id": "item1",
            "idCustomField": "field1",
            "idModel": "card1",
            "modelType": "card",
            "value": {"text": "https://lms/a/1"},
        },
        {
            "id": "item2",
            "idCustomField": "field2",
            "idModel": "card1",
            "modelType": "card",
            "value": {"number": "3"},
        },
    ],
}

TRELLO_BOARD = {
    "id": "board1",
    "name": "School",
    "cards": [TRELLO_CARD],
    "customFields": [
        {"id": "field1", "name": "Canvas URL", "type": "text"},
        {"id": "field2", "name": "Points", "type": "number"},
    ],
    "labels": [{"id": "label1", "name": "CS 101", "color": "green"}],
    "lists": [{"id": "list1", "name": "To Do"}, {"id": "list2", "name": "Done"}],
}


def make_assignment(**overrides) -> Assignment:
    fields = {
        "id": "1",
        "name": "HW1",
        "description": None,
        "due_at": DUE,
        "url": "http://lms/a/1",
        "submitted": False,
    }
    fields.update(overrides)
    return Assignment(**fields)


def make_card(card_id="card1", tracking="https://lms/a/1", **overrides) -> Card:
    items = []
    if tracking is not None:
        items.append(CustomFieldItem(id=f"{card_id}-item", id_custom_field="field1", value=TextValue(text=tracking)))
    fields = {
        "id": card_id,
        "name": "HW1",
        "desc": "🔄 Canvas Trello Sync",
        "due": DUE,
        "due_complete": False,
        "custom_field_items": items,
    }
    fields.update(overrides)
    return Card(**fields)


def make_board(cards=()) -> BoardSnapshot:
    return BoardSnapshot(
        cards=list(cards),
        labels=[Label(id="label1", name="CS 101"), Label(id="label2", name="MATH 200")],
        lists=[BoardList(id="list1", name="To Do"), BoardList(id="list2", name="Done")],
        custom_fields=[CustomFieldDef(id="field1", name="Canvas URL")],
    )


def make_config(*mappings) -> SyncConfig:
    return SyncConfig(
        trello=TrelloConfig(board_id="board1", add_to_list="To Do"),
        canvas=CanvasConfig(graphql_endpoint="https://lms/api/graphql"),
        mappings=list(mappings) or [Mapping(canvas_course_id="123", trello_label_name="CS 101")],
    )


# --- Fake collaborators ---


class FakeTrelloClient:
    """In-memory board that applies mutations and records every call."""

    def __init__(self, board: BoardSnapshot):
        self.board = board
        self.calls = []
        self.fail_on = set()
        self._next_id = 1

    def _maybe_fail(self, name):
        if name in self.fail_on:
            raise RemoteError(f"{name} refused")

    def get_board_contents(self, board_id):
        self.calls.append(("get_board_contents", board_id))
        self._maybe_fail("get_board_contents")
        return self.board.model_copy(deep=True)

    def create_card(self, list_id, create_card: CreateCard):
        self.calls.append(("create_card", list_id, create_card))
        self._maybe_fail("create_card")
        card = Card(
            id=f"new{self._next_id}",
            name=create_card.name,
            desc=create_card.desc,
            due=create_card.due,
            due_complete=create_card.due_complete,
            id_list=list_id,
            label_ids=list(create_card.label_ids),
        )
        self._next_id += 1
        self.board.cards.append(card)
        return card.model_copy(deep=True)

    def _card(self, card_id):
        return next(c for c in self.board.cards if c.id == card_id)

    def update_card(self, card_id, patch):
        self.calls.append(("update_card", card_id, patch))
        self._maybe_fail("update_card")
        card = self._card(card_id)
        card.due = parse_timestamp(patch["due"])
        card.due_complete = patch["dueComplete"] == "true"
        card.desc = patch["desc"]

    def set_custom_field(self, card_id, field_id, value):
        self.calls.append(("set_custom_field", card_id, field_id, value))
        self._maybe_fail("set_custom_field")
        self._card(card_id).custom_field_items.append(
            CustomFieldItem(id=f"{card_id}-{field_id}", id_custom_field=field_id, value=value)
        )

    def call_names(self):
        return [call[0] for call in self.calls]


class FakeCanvasClient:
    def __init__(self, assignments_by_course):
        self.assignments_by_course = assignments_by_course
        self.requested = []

    def get_assignments(self, course_id):
        self.requested.append(course_id)
        return list(self.assignments_by_course[course_id])


@pytest.fixture
def fake_trello():
    return FakeTrelloClient(make_board())


@pytest.fixture
def fake_canvas():
    return FakeCanvasClient({"123": [make_assignment()]})


@pytest.fixture
def mock_session(mocker):
    """Mocked shared requests.Session used by both API clients."""
    session = MagicMock()
    mocker.patch("canvas_trello_sync.services.canvas.get_session", return_value=session)
    mocker.patch("canvas_trello_sync.services.trello.get_session", return_value=session)
    return session


def make_response(status=200, json_data=None, text=""):
    resp = MagicMock()
    resp.status_code = status
    resp.text = text
    if isinstance(json_data, Exception):
        resp.json.side_effect = json_data
    else:
        resp.json.return_value = json_data
    return resp
