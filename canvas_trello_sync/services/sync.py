"""Sync driver: walk the configured mappings and apply reconciliation decisions.

Everything runs sequentially. Any error aborts the run; mutations applied
before the error stay applied.
"""

import logging
from dataclasses import dataclass

from canvas_trello_sync.config import Mapping, SyncConfig
from canvas_trello_sync.exceptions import SyncError
from canvas_trello_sync.models.canvas import Assignment
from canvas_trello_sync.models.sync import CreateCard, Decision, SyncCounts, UpdateCard, UpToDate
from canvas_trello_sync.models.trello import BoardSnapshot, TextValue
from canvas_trello_sync.services.board_index import BoardIndex, match_cards
from canvas_trello_sync.services.canvas import CanvasClient
from canvas_trello_sync.services.normalizer import normalize
from canvas_trello_sync.services.reconciler import reconcile
from canvas_trello_sync.services.trello import TrelloClient

logger = logging.getLogger(__name__)


@dataclass
class SyncContext:
    config: SyncConfig
    canvas: CanvasClient
    trello: TrelloClient
    board: BoardSnapshot
    index: BoardIndex
    tracking_field_id: str
    new_card_list_id: str
    dry_run: bool = False


def prepare_context(
    config: SyncConfig,
    canvas: CanvasClient,
    trello: TrelloClient,
    dry_run: bool = False,
) -> SyncContext:
    """Fetch the board once and resolve the ids shared by every mapping."""
    board_id = config.trello.board_id
    try:
        board = trello.get_board_contents(board_id)
    except SyncError as e:
        raise SyncError(f"Failed to get contents of board: {board_id!r}") from e
    logger.info(
        "Fetched board %s: %d cards, %d lists, %d labels",
        board_id, len(board.cards), len(board.lists), len(board.labels),
    )

    index = BoardIndex(board)
    tracking_field_id = index.custom_field_id(config.trello.tracking_field)
    logger.info("Tracking field %r has id %s", config.trello.tracking_field, tracking_field_id)
    new_card_list_id = index.list_id(config.trello.add_to_list)

    return SyncContext(
        config=config,
        canvas=canvas,
        trello=trello,
        board=board,
        index=index,
        tracking_field_id=tracking_field_id,
        new_card_list_id=new_card_list_id,
        dry_run=dry_run,
    )


def _create_card(ctx: SyncContext, decision: CreateCard) -> None:
    try:
        new_card = ctx.trello.create_card(decision.list_id, decision)
    except SyncError as e:
        raise SyncError("Failed to create card") from e

    try:
        ctx.trello.set_custom_field(
            new_card.id, ctx.tracking_field_id, TextValue(text=decision.tracking_value)
        )
    except SyncError as e:
        # The card exists but will not be matched on the next run.
        logger.error("Card %s was created without its tracking field", new_card.id)
        raise SyncError(f"Failed to set tracking field of card: {new_card.id!r}") from e


def apply_decision(ctx: SyncContext, decision: Decision) -> SyncCounts:
    """Apply one decision to the board and return what it counts for."""
    if isinstance(decision, UpToDate):
        logger.info("Card up to date: %s", decision.card_id)
        return SyncCounts(up_to_date=1)

    if isinstance(decision, UpdateCard):
        logger.info(
            "Update card %s: due=%s complete=%s",
            decision.card_id, decision.due.isoformat(), decision.due_complete,
        )
        logger.debug("Card %s mismatches: %s", decision.card_id, ", ".join(decision.mismatches))
        if "desc" in decision.mismatches:
            logger.debug("Old description: %r", ctx.index.card(decision.card_id).desc)
            logger.debug("New description: %r", decision.desc)
        if ctx.dry_run:
            return SyncCounts(updated=1)
        try:
            ctx.trello.update_card(decision.card_id, decision.patch())
        except SyncError as e:
            raise SyncError(f"Failed to update card: {decision.card_id!r}") from e
        return SyncCounts(updated=1)

    logger.info("Create card %r: due=%s", decision.name, decision.due.isoformat())
    if not ctx.dry_run:
        _create_card(ctx, decision)
    return SyncCounts(created=1)


def sync_assignment(ctx: SyncContext, label_id: str, assignment: Assignment) -> SyncCounts:
    normalized = normalize(assignment)
    logger.info("Assignment %r: %s", assignment.name, normalized.canonical_url)

    matched = match_cards(ctx.board, ctx.tracking_field_id, normalized.canonical_url)
    decisions = reconcile(matched, normalized, ctx.new_card_list_id, label_id)

    counts = SyncCounts(assignments=1)
    for decision in decisions:
        counts += apply_decision(ctx, decision)
    return counts


def sync_mapping(ctx: SyncContext, mapping: Mapping) -> SyncCounts:
    logger.info("Syncing course %s into label %r", mapping.canvas_course_id, mapping.trello_label_name)
    label_id = ctx.index.label_id(mapping.trello_label_name)

    try:
        assignments = ctx.canvas.get_assignments(mapping.canvas_course_id)
    except SyncError as e:
        raise SyncError("Failed to fetch assignment list") from e

    counts = SyncCounts()
    for assignment in assignments:
        try:
            counts += sync_assignment(ctx, label_id, assignment)
        except SyncError as e:
            raise SyncError(f"Failed to sync assignment: {assignment.name!r}") from e
    return counts


def run_sync(
    config: SyncConfig,
    canvas: CanvasClient,
    trello: TrelloClient,
    dry_run: bool = False,
) -> SyncCounts:
    """Sync every configured mapping and return the combined counts."""
    ctx = prepare_context(config, canvas, trello, dry_run=dry_run)

    counts = SyncCounts()
    for mapping in config.mappings:
        try:
            counts += sync_mapping(ctx, mapping)
        except SyncError as e:
            raise SyncError(f"Failed to sync mapping: {mapping.trello_label_name!r}") from e
    return counts
