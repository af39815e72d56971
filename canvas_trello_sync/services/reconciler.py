"""Decide what to do with the cards that track one assignment.

No card yields a single CreateCard. Otherwise every matched card is judged on
its own: duplicates are each kept in sync and never merged.
"""

from canvas_trello_sync.models.sync import (
    CreateCard,
    Decision,
    NormalizedAssignment,
    UpdateCard,
    UpToDate,
)
from canvas_trello_sync.models.trello import Card
from canvas_trello_sync.services.normalizer import DESC_HEADER


def card_mismatches(card: Card, normalized: NormalizedAssignment) -> list[str]:
    """Names of the fields on card that disagree with the assignment."""
    mismatches = []
    if card.due != normalized.due:
        mismatches.append("due")
    if card.due_complete != normalized.due_complete:
        mismatches.append("due_complete")
    # Descriptions are only managed on cards this tool wrote.
    if card.desc.startswith(DESC_HEADER) and card.desc != normalized.description:
        mismatches.append("desc")
    return mismatches


def reconcile_card(card: Card, normalized: NormalizedAssignment) -> UpdateCard | UpToDate:
    mismatches = card_mismatches(card, normalized)
    if not mismatches:
        return UpToDate(card_id=card.id)
    return UpdateCard(
        card_id=card.id,
        due=normalized.due,
        due_complete=normalized.due_complete,
        desc=normalized.description,
        mismatches=mismatches,
    )


def reconcile(
    matched_cards: list[Card],
    normalized: NormalizedAssignment,
    target_list_id: str,
    target_label_id: str,
) -> list[Decision]:
    if not matched_cards:
        return [
            CreateCard(
                list_id=target_list_id,
                label_ids=[target_label_id],
                name=normalized.assignment.name,
                desc=normalized.description,
                due=normalized.due,
                due_complete=normalized.due_complete,
                tracking_value=normalized.canonical_url,
            )
        ]
    return [reconcile_card(card, normalized) for card in matched_cards]
