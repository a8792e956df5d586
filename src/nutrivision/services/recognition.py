"""Recognition session: from a selected photo to a confirmed nutrition result."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace

from nutrivision.domain.meals import MealRecord
from nutrivision.domain.recognition import (
    ImageFile,
    RecognitionResult,
    SessionState,
)
from nutrivision.domain.sync import SyncOutcome
from nutrivision.services.classification import Classifier
from nutrivision.services.gating import AUTO_ACCEPT_THRESHOLD, decide, present
from nutrivision.services.labels import normalize_label
from nutrivision.services.meals import MealLogService
from nutrivision.services.nutrition import NutritionService
from nutrivision.services.sync import (
    SyncTarget,
    UnavailableSyncTarget,
    build_sync_payload,
)

TOP_K = 5
DEFAULT_GRAMS = 200.0
MAX_SESSIONS = 256

SELECT_IMAGE_FIRST = "Select an image first."
ANALYZE_FIRST = "Analyze an image first."
SELECT_LABEL_FIRST = "Analyze + select a label first."
NOT_LOGGED_IN = "Not logged in."
LOOKUP_IN_PROGRESS = "Wait for the nutrition lookup to finish."
ANALYSIS_IN_PROGRESS = "Wait for the analysis to finish."
ZERO_CALORIES = "Calories are 0 - not saving. Fix the label/portion first."
SAVED = "Saved to Dashboard."

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _LookupRequest:
    generation: int
    label: str
    grams: float


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a session for the host UI."""

    state: SessionState
    image_selected: bool
    grams: float
    result: RecognitionResult
    pending_label: str | None
    needs_pick: bool
    error: str | None
    save_message: str | None
    sync_message: str | None


@dataclass
class RecognitionSession:
    """State machine that confirms one photo's label and nutrition.

    Only this class writes ``result``. Lookups are never cancelled; a response
    is applied only when it answers the latest requested (label, grams), so
    out-of-order completions are dropped.
    """

    classifier: Classifier
    nutrition_service: NutritionService
    meal_log_service: MealLogService
    sync_target: SyncTarget = field(default_factory=UnavailableSyncTarget)
    default_grams: float = DEFAULT_GRAMS
    top_k: int = TOP_K

    state: SessionState = field(default=SessionState.IDLE, init=False)
    result: RecognitionResult = field(init=False)
    grams: float = field(init=False)
    image: ImageFile | None = field(default=None, init=False)
    error: str | None = field(default=None, init=False)
    save_message: str | None = field(default=None, init=False)
    sync_message: str | None = field(default=None, init=False)
    _generation: int = field(default=0, init=False)
    _analysis_seq: int = field(default=0, init=False)
    _analyzed: bool = field(default=False, init=False)
    _persisted: bool = field(default=False, init=False)
    _pending: _LookupRequest | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        self.grams = self.default_grams
        self.result = RecognitionResult(grams=self.grams)

    @property
    def pending_label(self) -> str | None:
        return self._pending.label if self._pending else None

    @property
    def needs_pick(self) -> bool:
        """True when the user should pick the label from the candidates."""
        if not self._analyzed:
            return False
        predictions = self.result.predictions
        top_score = predictions[0].score if predictions else 0.0
        return self.result.selected_label is None or top_score < AUTO_ACCEPT_THRESHOLD

    def snapshot(self) -> SessionSnapshot:
        """Return the current state and result."""
        return SessionSnapshot(
            state=self.state,
            image_selected=self.image is not None,
            grams=self.grams,
            result=self.result,
            pending_label=self.pending_label,
            needs_pick=self.needs_pick,
            error=self.error,
            save_message=self.save_message,
            sync_message=self.sync_message,
        )

    def select_image(self, image: ImageFile) -> None:
        """Start over with a new photo, dropping everything from the last one."""
        self._release_image(keep=image)
        self.image = image
        self._start_fresh()
        _logger.debug("Image selected: %s", image.filename)

    def reset(self) -> None:
        """Release the photo and return to an empty session."""
        self._release_image()
        self.image = None
        self.grams = self.default_grams
        self._start_fresh()

    async def analyze(self) -> None:
        """Classify the selected photo and gate the top prediction."""
        if self.image is None:
            self.error = SELECT_IMAGE_FIRST
            return
        self._clear_messages()
        self._analysis_seq += 1
        seq = self._analysis_seq
        generation = self._generation
        # Lookups started before this analysis can no longer apply.
        self._pending = None
        self._transition(SessionState.ANALYZING)
        try:
            predictions = await self.classifier.predict(
                self.image, self.top_k, self.grams
            )
        except Exception as exc:
            if seq != self._analysis_seq or generation != self._generation:
                _logger.debug("Ignoring failure of superseded analysis: %s", exc)
                return
            _logger.warning("Image analysis failed: %s", exc)
            self._fail(_describe_failure(exc, "Analyze failed"))
            return
        if seq != self._analysis_seq or generation != self._generation:
            _logger.debug("Discarding predictions from superseded analysis")
            return

        self._analyzed = True
        self._persisted = False
        self._pending = None
        self.result = RecognitionResult(
            predictions=present(predictions),
            selected_label=None,
            nutrition=None,
            grams=self.grams,
        )
        self._transition(SessionState.PREDICTIONS_READY)
        decision = decide(predictions)
        if decision.auto_label is None:
            self._transition(SessionState.NEEDS_DISAMBIGUATION)
            return
        self._transition(SessionState.AUTO_CONFIRMED)
        await self._resolve(decision.auto_label)

    async def choose_label(self, label: str) -> None:
        """Look up nutrition for a label the user picked."""
        normalized = normalize_label(label)
        if not normalized:
            return
        if self.state == SessionState.ANALYZING:
            self.error = ANALYSIS_IN_PROGRESS
            return
        if not self._analyzed:
            self.error = ANALYZE_FIRST
            return
        await self._resolve(normalized)

    async def set_grams(self, grams: float) -> None:
        """Change the portion and re-resolve the current label, if any.

        While an analysis runs only the portion is updated; the analysis
        resolves its own label with it.
        """
        if grams <= 0:
            raise ValueError("Portion must be a positive number of grams")
        self.grams = float(grams)
        if self.state == SessionState.ANALYZING:
            return
        label = self.pending_label or self.result.selected_label
        if label is None:
            return
        await self._resolve(label)

    def persist(self, user_id: str | None) -> MealRecord | None:
        """Save the confirmed result as a meal for ``user_id``."""
        self.save_message = None
        self.sync_message = None
        if not user_id:
            self.save_message = NOT_LOGGED_IN
            return None
        label = self.result.selected_label
        nutrition = self.result.nutrition
        if label is None or nutrition is None:
            self.save_message = SELECT_LABEL_FIRST
            return None
        if self._pending is not None:
            self.save_message = LOOKUP_IN_PROGRESS
            return None
        if self.state == SessionState.ANALYZING:
            self.save_message = ANALYSIS_IN_PROGRESS
            return None
        if self.state not in (SessionState.CONFIRMED, SessionState.PERSISTED):
            self.save_message = SELECT_LABEL_FIRST
            return None

        record = self.meal_log_service.build_record(user_id, label, nutrition)
        if record.calories <= 0:
            _logger.info("Refusing to save %s with %s kcal", label, record.calories)
            self.save_message = ZERO_CALORIES
            return None

        self.error = None
        self._transition(SessionState.PERSIST_REQUESTED)
        image_ref = self.meal_log_service.store_image(user_id, self.image)
        record = replace(record, image_ref=image_ref)
        try:
            self.meal_log_service.save(record)
        except Exception as exc:
            _logger.exception("Saving meal failed")
            self._transition(SessionState.PERSIST_FAILED)
            self._transition(SessionState.CONFIRMED)
            self.error = _describe_failure(exc, "Save failed")
            return None
        self._persisted = True
        self._transition(SessionState.PERSISTED)
        self.save_message = SAVED
        return record

    async def sync(self, user_id: str | None = None) -> SyncOutcome:
        """Send the confirmed meal to the health sync target."""
        self.save_message = None
        label = self.result.selected_label
        nutrition = self.result.nutrition
        if label is None or nutrition is None:
            outcome = SyncOutcome(delivered=False, message=SELECT_LABEL_FIRST)
        else:
            record = self.meal_log_service.build_record(user_id or "", label, nutrition)
            outcome = await self.sync_target.sync_meal(build_sync_payload(record))
        self.sync_message = outcome.message
        return outcome

    async def _resolve(self, label: str) -> None:
        grams = self.grams
        confirmed = self.result.nutrition
        if (
            confirmed is not None
            and self.result.selected_label == label
            and confirmed.grams == grams
        ):
            # Already showing this exact lookup; supersede anything in flight.
            self._pending = None
            self._transition(self._settled_state())
            return

        request = _LookupRequest(self._generation, label, grams)
        self._pending = request
        self._clear_messages()
        self._transition(SessionState.NUTRITION_RESOLVING)
        try:
            profile = await self.nutrition_service.lookup(label, grams)
        except Exception as exc:
            if self._pending != request:
                _logger.debug("Ignoring failed stale lookup for %s: %s", label, exc)
                return
            self._pending = None
            _logger.warning("Nutrition lookup failed for %s: %s", label, exc)
            self._fail(_describe_failure(exc, "Nutrition lookup failed"))
            return
        if self._pending != request:
            _logger.debug("Discarding stale nutrition for %s at %sg", label, grams)
            return

        self._pending = None
        self._persisted = False
        self.result = RecognitionResult(
            predictions=self.result.predictions,
            selected_label=label,
            nutrition=profile,
            grams=grams,
        )
        self._transition(SessionState.CONFIRMED)

    def _fail(self, message: str) -> None:
        self._transition(SessionState.FAILED)
        self._transition(self._settled_state())
        self.error = message

    def _settled_state(self) -> SessionState:
        if self.result.nutrition is not None:
            return SessionState.PERSISTED if self._persisted else SessionState.CONFIRMED
        if self._analyzed:
            return SessionState.PREDICTIONS_READY
        return SessionState.IDLE

    def _start_fresh(self) -> None:
        self._generation += 1
        self._analyzed = False
        self._persisted = False
        self._pending = None
        self.result = RecognitionResult(grams=self.grams)
        self._clear_messages()
        self._transition(SessionState.IDLE)

    def _release_image(self, keep: ImageFile | None = None) -> None:
        previous = self.image
        if previous is None or previous is keep or previous.released:
            return
        previous.release()

    def _clear_messages(self) -> None:
        self.error = None
        self.save_message = None
        self.sync_message = None

    def _transition(self, state: SessionState) -> None:
        if state != self.state:
            _logger.debug("Recognition session %s -> %s", self.state, state)
        self.state = state


@dataclass
class RecognitionSessionRegistry:
    """Keeps one recognition session per caller.

    At most ``max_sessions`` are held; the least recently used session is
    reset and dropped when a new caller would exceed the limit.
    """

    factory: Callable[[], RecognitionSession]
    max_sessions: int = MAX_SESSIONS
    _sessions: dict[str, RecognitionSession] = field(default_factory=dict)

    def get(self, key: str) -> RecognitionSession:
        """Return the caller's session, creating it on first use."""
        session = self._sessions.pop(key, None)
        if session is None:
            session = self.factory()
        self._sessions[key] = session
        while len(self._sessions) > self.max_sessions:
            oldest = next(iter(self._sessions))
            self._sessions.pop(oldest).reset()
            _logger.info("Evicted recognition session %s", oldest)
        return session

    def __len__(self) -> int:
        return len(self._sessions)

    def discard(self, key: str) -> None:
        """Drop a caller's session and release its photo."""
        session = self._sessions.pop(key, None)
        if session is not None:
            session.reset()


def _describe_failure(exc: Exception, fallback: str) -> str:
    """Prefer the service's ``detail`` message, then the exception text."""
    response = getattr(exc, "response", None)
    if response is not None:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("detail"), str):
            return body["detail"]
    return str(exc) or fallback
