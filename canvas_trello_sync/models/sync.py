from datetime import datetime

from pydantic import BaseModel

from canvas_trello_sync.models.canvas import Assignment


class NormalizedAssignment(BaseModel):
    assignment: Assignment
    canonical_url: str
    description: str
    due: datetime
    due_complete: bool


# --- Decisions ---


class CreateCard(BaseModel):
    """Create a card, then set its tracking field to tracking_value."""

    list_id: str
    label_ids: list[str]
    name: str
    desc: str
    due: datetime
    due_complete: bool
    tracking_value: str


class UpdateCard(BaseModel):
    card_id: str
    due: datetime
    due_complete: bool
    desc: str
    mismatches: list[str] = []

    def patch(self) -> dict[str, str]:
        return {
            "due": self.due.isoformat(),
            "dueComplete": str(self.due_complete).lower(),
            "desc": self.desc,
        }


class UpToDate(BaseModel):
    card_id: str


Decision = CreateCard | UpdateCard | UpToDate


class SyncCounts(BaseModel):
    assignments: int = 0
    created: int = 0
    updated: int = 0
    up_to_date: int = 0

    def __add__(self, other: "SyncCounts") -> "SyncCounts":
        return SyncCounts(
            assignments=self.assignments + other.assignments,
            created=self.created + other.created,
            updated=self.updated + other.updated,
            up_to_date=self.up_to_date + other.up_to_date,
        )
