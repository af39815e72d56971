from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field


class Label(BaseModel):
    id: str
    name: str


class BoardList(BaseModel):
    id: str
    name: str


class CustomFieldDef(BaseModel):
    id: str
    name: str


# --- Custom field values ---


class TextValue(BaseModel):
    kind: Literal["text"] = "text"
    text: str

    def to_payload(self) -> dict:
        return {"text": self.text}


class OtherValue(BaseModel):
    """Any non-text payload (number, date, checked), kept as sent by Trello."""

    kind: Literal["other"] = "other"
    raw: dict[str, Any]

    def to_payload(self) -> dict:
        return dict(self.raw)


CustomFieldValue = Annotated[TextValue | OtherValue, Field(discriminator="kind")]


class CustomFieldItem(BaseModel):
    id: str
    id_custom_field: str
    value: CustomFieldValue | None = None

    def as_text(self) -> str | None:
        if isinstance(self.value, TextValue):
            return self.value.text
        return None


class Card(BaseModel):
    id: str
    name: str
    desc: str = ""
    due: datetime | None = None
    due_complete: bool = False
    id_list: str | None = None
    label_ids: list[str] = []
    custom_field_items: list[CustomFieldItem] = []

    def custom_field_text(self, field_id: str) -> str | None:
        """Text value of the given custom field, None when unset or not text."""
        for item in self.custom_field_items:
            if item.id_custom_field == field_id:
                return item.as_text()
        return None


class BoardSnapshot(BaseModel):
    cards: list[Card] = []
    labels: list[Label] = []
    lists: list[BoardList] = []
    custom_fields: list[CustomFieldDef] = []
