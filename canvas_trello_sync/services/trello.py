import requests

from canvas_trello_sync.exceptions import (
    AuthenticationError,
    FetchError,
    ParseError,
    RateLimitError,
    RemoteError,
)
from canvas_trello_sync.http_client import DEFAULT_TIMEOUT, get_session
from canvas_trello_sync.models.sync import CreateCard
from canvas_trello_sync.models.trello import (
    BoardList,
    BoardSnapshot,
    Card,
    CustomFieldDef,
    CustomFieldItem,
    Label,
    OtherValue,
    TextValue,
)
from canvas_trello_sync.services.canvas import parse_timestamp

TRELLO_API_BASE = "https://api.trello.com/1"

BOARD_CONTENT_PARAMS = {
    "cards": "all",
    "card_customFieldItems": "true",
    "customFields": "true",
    "labels": "all",
    "lists": "all",
}


def _handle_response(resp: requests.Response) -> dict | list:
    if resp.status_code in (401, 403):
        raise AuthenticationError(f"Trello auth error (HTTP {resp.status_code}): {resp.text[:200]}")
    if resp.status_code == 429:
        raise RateLimitError("Trello API rate limit exceeded.")
    if resp.status_code == 404:
        raise RemoteError(f"Trello resource not found: {resp.text[:200]}")
    if resp.status_code >= 400:
        raise RemoteError(f"Trello API error ({resp.status_code}): {resp.text[:200]}")
    try:
        return resp.json()
    except ValueError as e:
        raise ParseError("Failed to parse response body") from e


def _parse_field_value(value: dict | None) -> TextValue | OtherValue | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise TypeError(f"custom field value must be an object, got {type(value).__name__}")
    if isinstance(value.get("text"), str) and len(value) == 1:
        return TextValue(text=value["text"])
    return OtherValue(raw=value)


def _parse_custom_field_item(item: dict) -> CustomFieldItem:
    return CustomFieldItem(
        id=item["id"],
        id_custom_field=item["idCustomField"],
        value=_parse_field_value(item.get("value")),
    )


def _parse_card(item: dict) -> Card:
    due = item.get("due")
    return Card(
        id=item["id"],
        name=item.get("name", ""),
        desc=item.get("desc") or "",
        due=parse_timestamp(due) if due else None,
        due_complete=bool(item.get("dueComplete", False)),
        id_list=item.get("idList"),
        label_ids=item.get("idLabels") or [label["id"] for label in item.get("labels", [])],
        custom_field_items=[_parse_custom_field_item(i) for i in item.get("customFieldItems", [])],
    )


def _parse_board(data: dict) -> BoardSnapshot:
    return BoardSnapshot(
        cards=[_parse_card(c) for c in data["cards"]],
        labels=[Label(id=label["id"], name=label.get("name") or "") for label in data["labels"]],
        lists=[BoardList(id=board_list["id"], name=board_list["name"]) for board_list in data["lists"]],
        custom_fields=[CustomFieldDef(id=f["id"], name=f["name"]) for f in data["customFields"]],
    )


class TrelloClient:
    def __init__(self, api_key: str, api_token: str, base_url: str = TRELLO_API_BASE):
        self._api_key = api_key
        self._api_token = api_token
        self.base_url = base_url.rstrip("/")

    def _headers(self) -> dict:
        return {
            "Authorization": (
                f'OAuth oauth_consumer_key="{self._api_key}", oauth_token="{self._api_token}"'
            ),
            "Accept": "application/json",
        }

    def _request(self, method: str, path: str, **kwargs) -> dict | list:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            resp = get_session().request(
                method, url, headers=self._headers(), timeout=DEFAULT_TIMEOUT, **kwargs
            )
        except requests.RequestException as e:
            raise FetchError(f"Failed to reach Trello ({method} {path})") from e
        return _handle_response(resp)

    def get_board_contents(self, board_id: str) -> BoardSnapshot:
        data = self._request("GET", f"boards/{board_id}", params=BOARD_CONTENT_PARAMS)
        try:
            return _parse_board(data)
        except (KeyError, TypeError, ValueError) as e:
            raise ParseError(f"Unexpected contents for board: {board_id!r}") from e

    def create_card(self, list_id: str, create_card: CreateCard) -> Card:
        data = self._request(
            "POST",
            "cards",
            json={
                "idList": list_id,
                "name": create_card.name,
                "desc": create_card.desc,
                "due": create_card.due.isoformat(),
                "dueComplete": create_card.due_complete,
                "idLabels": ",".join(create_card.label_ids),
            },
        )
        try:
            return _parse_card(data)
        except (KeyError, TypeError, ValueError) as e:
            raise ParseError("Unexpected response to card creation") from e

    def update_card(self, card_id: str, patch: dict[str, str]) -> None:
        self._request("PUT", f"cards/{card_id}", json=patch)

    def set_custom_field(self, card_id: str, field_id: str, value: TextValue | OtherValue) -> None:
        self._request(
            "PUT",
            f"cards/{card_id}/customField/{field_id}/item",
            json={"value": value.to_payload()},
        )
