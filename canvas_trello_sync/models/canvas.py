from datetime import datetime

from pydantic import BaseModel


class Assignment(BaseModel):
    id: str
    name: str
    description: str | None = None
    due_at: datetime
    url: str
    submitted: bool = False

    model_config = {"frozen": True}
