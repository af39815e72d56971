"""Name lookups over a board snapshot, and tracking-field card matching.

When several entities share a name the first one in the board's own ordering
wins; duplicate names are not rejected.
"""

from canvas_trello_sync.exceptions import NotFound
from canvas_trello_sync.models.trello import BoardSnapshot, Card


def _first_by_name(entities) -> dict[str, str]:
    ids: dict[str, str] = {}
    for entity in entities:
        ids.setdefault(entity.name, entity.id)
    return ids


class BoardIndex:
    def __init__(self, board: BoardSnapshot):
        self.board = board
        self._custom_fields = _first_by_name(board.custom_fields)
        self._lists = _first_by_name(board.lists)
        self._labels = _first_by_name(board.labels)
        self._cards = {card.id: card for card in board.cards}

    def custom_field_id(self, name: str) -> str:
        try:
            return self._custom_fields[name]
        except KeyError:
            raise NotFound(f"No custom field found named {name!r}") from None

    def list_id(self, name: str) -> str:
        try:
            return self._lists[name]
        except KeyError:
            raise NotFound(f"Could not find list {name!r}") from None

    def label_id(self, name: str) -> str:
        try:
            return self._labels[name]
        except KeyError:
            raise NotFound(f"Could not find label {name!r}") from None

    def card(self, card_id: str) -> Card:
        try:
            return self._cards[card_id]
        except KeyError:
            raise NotFound(f"Could not find card {card_id!r}") from None


def match_cards(board: BoardSnapshot, tracking_field_id: str, canonical_url: str) -> list[Card]:
    """All cards whose tracking field holds exactly canonical_url, in board order."""
    return [card for card in board.cards if card.custom_field_text(tracking_field_id) == canonical_url]
