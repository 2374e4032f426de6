import logging
from dataclasses import dataclass

from cardmaker import config
from cardmaker.errors import (
    GenerationError,
    PersistenceError,
    ValidationError,
    WorkflowBusyError,
)
from cardmaker.models.schemas import Card, PhrasePairItem, WorkflowSnapshot
from cardmaker.services import card_generator
from cardmaker.services.anki_connect import AnkiConnect

logger = logging.getLogger("uvicorn.error")

IDLE = "idle"
GENERATING = "generating"
READY = "ready"
SUBMITTING = "submitting"

CARD = "card"
PHRASE_PAIRS = "phrase_pairs"


@dataclass(frozen=True)
class WorkflowConfig:
    kind: str
    title: str
    response_schema: str
    deck_name: str
    model_name: str = config.ANKI_NOTE_MODEL
    fixed_tags: tuple[str, ...] = ()


WORKFLOW_CONFIGS = [
    WorkflowConfig(
        kind="spanish",
        title="Spanish Vocabulary",
        response_schema=CARD,
        deck_name="Spanish Vocabulary",
    ),
    WorkflowConfig(
        kind="ngrams",
        title="Spanish N-grams",
        response_schema=PHRASE_PAIRS,
        deck_name="Spanish Vocabulary",
        fixed_tags=("n-gram",),
    ),
    WorkflowConfig(
        kind="english",
        title="English Vocabulary",
        response_schema=CARD,
        deck_name="English Vocabulary",
    ),
]


def parse_tags(text: str) -> list[str]:
    """Split a comma-separated tag string, dropping blanks. Order and duplicates are kept."""
    return [tag.strip() for tag in text.split(",") if tag.strip()]


class Workflow:
    """Generate, edit and approve cycle for one kind of card.

    idle -> generating -> ready -> submitting -> idle. A failed generation
    returns to idle with no draft; a failed submission returns to ready with
    the draft kept so it can be retried. Generation and persistence errors are
    recorded in ``error`` and never raised from here. Any other exception
    still returns the workflow to idle or ready before it propagates.
    """

    def __init__(self, config: WorkflowConfig, anki: AnkiConnect | None = None):
        self.config = config
        self.anki = anki or AnkiConnect()
        self.state = IDLE
        self.term = ""
        self.card: Card | None = None
        self.items: list[PhrasePairItem] = []
        self.error: str | None = None
        self.success = False

    @property
    def kind(self) -> str:
        return self.config.kind

    def snapshot(self) -> WorkflowSnapshot:
        return WorkflowSnapshot(
            kind=self.kind,
            title=self.config.title,
            state=self.state,
            term=self.term,
            card=self.card.model_copy(deep=True) if self.card else None,
            items=[item.model_copy() for item in self.items],
            selected_count=len(self.selected_items()),
            error=self.error,
            success=self.success,
        )

    def selected_items(self) -> list[PhrasePairItem]:
        return [item for item in self.items if item.selected]

    def _reject(self, message: str):
        self.error = message
        raise ValidationError(message)

    def _require_state(self, *allowed: str):
        if self.state not in allowed:
            raise WorkflowBusyError(f"'{self.kind}' is busy ({self.state})")

    # ===== Generate =====

    async def generate(self, term: str) -> WorkflowSnapshot:
        self._require_state(IDLE, READY)
        term = term.strip()
        if not term:
            self._reject("Please enter a word or phrase")

        self.state = GENERATING
        self.term = term
        self.card = None
        self.items = []
        self.error = None
        self.success = False

        try:
            if self.config.response_schema == PHRASE_PAIRS:
                pairs = await card_generator.generate_phrase_pairs(term, self.kind)
                self.items = [
                    PhrasePairItem(id=f"ngram-{i}", front=front, back=back)
                    for i, (front, back) in enumerate(pairs.items())
                ]
            else:
                self.card = await card_generator.generate_card(term, self.kind)
        except GenerationError as e:
            logger.info(f"[{self.kind}] Generation failed for '{term}': {e}")
            if e.raw_text is not None:
                logger.debug(f"[{self.kind}] Raw model reply: {e.raw_text}")
            self.error = str(e)
            self.state = IDLE
            return self.snapshot()
        except Exception as e:
            self.error = f"{type(e).__name__}: {e}"
            self.state = IDLE
            raise

        self.state = READY
        return self.snapshot()

    # ===== Edit =====

    def _require_card(self) -> Card:
        self._require_state(IDLE, READY)
        if self.card is None:
            self._reject("There is no card to edit")
        return self.card

    def _find_item(self, item_id: str) -> PhrasePairItem:
        self._require_state(IDLE, READY)
        for item in self.items:
            if item.id == item_id:
                return item
        self._reject(f"Unknown item: {item_id}")

    def update_field(self, field_name: str, value: str) -> WorkflowSnapshot:
        card = self._require_card()
        if field_name == "extra":
            card.extra = value if value.strip() else None
        elif field_name in ("front", "back"):
            setattr(card, field_name, value)
        else:
            self._reject(f"Unknown field: {field_name}")
        return self.snapshot()

    def set_tags(self, text: str) -> WorkflowSnapshot:
        card = self._require_card()
        card.tags = parse_tags(text)
        return self.snapshot()

    def toggle_item(self, item_id: str) -> WorkflowSnapshot:
        item = self._find_item(item_id)
        item.selected = not item.selected
        return self.snapshot()

    def update_item(self, item_id: str, front: str | None = None, back: str | None = None) -> WorkflowSnapshot:
        item = self._find_item(item_id)
        if front is not None:
            item.front = front
        if back is not None:
            item.back = back
        return self.snapshot()

    # ===== Approve =====

    def _cards_to_submit(self) -> list[Card]:
        if self.config.response_schema == PHRASE_PAIRS:
            selected = self.selected_items()
            if not selected:
                self._reject("Please select at least one n-gram to add")
            if any(not item.front.strip() or not item.back.strip() for item in selected):
                self._reject("Selected n-grams must have both sides filled in")
            return [
                Card(front=item.front, back=item.back, tags=list(self.config.fixed_tags))
                for item in selected
            ]

        if self.card is None:
            self._reject("There is no card to add")
        if not self.card.front.strip() or not self.card.back.strip():
            self._reject("Front and back must not be empty")
        return [self.card.model_copy(deep=True)]

    async def approve(self) -> WorkflowSnapshot:
        self._require_state(IDLE, READY)
        cards = self._cards_to_submit()

        self.state = SUBMITTING
        self.error = None
        self.success = False

        try:
            await self.anki.persist(
                cards if self.config.response_schema == PHRASE_PAIRS else cards[0],
                self.config.deck_name,
                self.config.model_name,
            )
        except PersistenceError as e:
            logger.info(f"[{self.kind}] Adding to Anki failed: {e}")
            self.error = str(e)
            self.state = READY
            return self.snapshot()
        except Exception as e:
            self.error = f"{type(e).__name__}: {e}"
            self.state = READY
            raise

        logger.info(f"[{self.kind}] Added {len(cards)} card(s) to '{self.config.deck_name}'")
        self.success = True
        self.term = ""
        self.card = None
        self.items = []
        self.state = IDLE
        return self.snapshot()

    def reset(self) -> WorkflowSnapshot:
        self._require_state(IDLE, READY)
        self.state = IDLE
        self.term = ""
        self.card = None
        self.items = []
        self.error = None
        self.success = False
        return self.snapshot()


def build_workflows(anki: AnkiConnect | None = None) -> dict[str, Workflow]:
    anki = anki or AnkiConnect()
    return {cfg.kind: Workflow(cfg, anki) for cfg in WORKFLOW_CONFIGS}
