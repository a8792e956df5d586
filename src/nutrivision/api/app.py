"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, File, Header, HTTPException, Request, UploadFile, status

from nutrivision.api.models import GramsUpdate, LabelChoice, MacroTargetsPayload
from nutrivision.app_logging import configure_logging
from nutrivision.containers import AppContainer
from nutrivision.domain.recognition import ImageFile, NutritionProfile
from nutrivision.domain.suggestions import MacroTargets, Suggestion
from nutrivision.services.recognition import RecognitionSession, SessionSnapshot

def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        try:
            await app.state.container.close_resources()
        except Exception:
            logger.exception("Failed to close HTTP clients")

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/scan")
    async def get_scan(
        request: Request, x_user_id: str | None = Header(default=None)
    ) -> dict[str, object]:
        """Return the caller's current scan."""
        session = _session(request, x_user_id)
        return _format_snapshot(session.snapshot())

    @app.post("/scan/image")
    async def select_image(
        request: Request,
        image: UploadFile = File(...),
        x_user_id: str | None = Header(default=None),
    ) -> dict[str, object]:
        """Start a fresh scan with an uploaded photo."""
        data = await image.read()
        if not data:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Image is empty",
            )
        session = _session(request, x_user_id)
        session.select_image(
            ImageFile(
                data=data,
                filename=image.filename or "image.jpg",
                content_type=image.content_type or "image/jpeg",
            )
        )
        return _format_snapshot(session.snapshot())

    @app.put("/scan/grams")
    async def set_grams(
        update: GramsUpdate,
        request: Request,
        x_user_id: str | None = Header(default=None),
    ) -> dict[str, object]:
        """Change the portion size."""
        session = _session(request, x_user_id)
        await session.set_grams(update.grams)
        return _format_snapshot(session.snapshot())

    @app.post("/scan/analyze")
    async def analyze(
        request: Request, x_user_id: str | None = Header(default=None)
    ) -> dict[str, object]:
        """Classify the selected photo."""
        session = _session(request, x_user_id)
        await session.analyze()
        return _format_snapshot(session.snapshot())

    @app.post("/scan/label")
    async def choose_label(
        choice: LabelChoice,
        request: Request,
        x_user_id: str | None = Header(default=None),
    ) -> dict[str, object]:
        """Confirm a candidate label."""
        session = _session(request, x_user_id)
        await session.choose_label(choice.label)
        return _format_snapshot(session.snapshot())

    @app.post("/scan/persist")
    async def persist(
        request: Request, x_user_id: str | None = Header(default=None)
    ) -> dict[str, object]:
        """Save the confirmed scan as a meal."""
        session = _session(request, x_user_id)
        session.persist(x_user_id)
        return _format_snapshot(session.snapshot())

    @app.post("/scan/sync")
    async def sync(
        request: Request, x_user_id: str | None = Header(default=None)
    ) -> dict[str, object]:
        """Send the confirmed scan to the health sync target."""
        session = _session(request, x_user_id)
        await session.sync(x_user_id)
        return _format_snapshot(session.snapshot())

    @app.delete("/scan")
    async def reset_scan(
        request: Request, x_user_id: str | None = Header(default=None)
    ) -> dict[str, str]:
        """Discard the caller's scan."""
        state_container: AppContainer = request.app.state.container
        state_container.sessions.discard(_require_user(x_user_id))
        return {"status": "ok"}

    @app.get("/helper")
    async def get_helper(
        request: Request, x_user_id: str | None = Header(default=None)
    ) -> dict[str, object]:
        """Return targets, intake, remainder and the suggestion."""
        user_id = _require_user(x_user_id)
        state_container: AppContainer = request.app.state.container
        helper = state_container.meal_helper_service
        state = helper.get_state(user_id)
        return {
            "target": _format_macros(state.target),
            "consumed": _format_macros(state.consumed),
            "remaining": _format_macros(state.remaining),
            "suggestion": _format_suggestion(helper.current_suggestion(user_id)),
        }

    @app.put("/helper/target")
    async def set_target(
        payload: MacroTargetsPayload,
        request: Request,
        x_user_id: str | None = Header(default=None),
    ) -> dict[str, object]:
        """Update the daily target."""
        user_id = _require_user(x_user_id)
        state_container: AppContainer = request.app.state.container
        suggestion = state_container.meal_helper_service.set_target(
            user_id, payload.to_domain()
        )
        return _format_suggestion(suggestion)

    @app.put("/helper/consumed")
    async def set_consumed(
        payload: MacroTargetsPayload,
        request: Request,
        x_user_id: str | None = Header(default=None),
    ) -> dict[str, object]:
        """Update what has been eaten so far."""
        user_id = _require_user(x_user_id)
        state_container: AppContainer = request.app.state.container
        suggestion = state_container.meal_helper_service.set_consumed(
            user_id, payload.to_domain()
        )
        return _format_suggestion(suggestion)

    @app.get("/helper/suggestion")
    async def current_suggestion(
        request: Request, x_user_id: str | None = Header(default=None)
    ) -> dict[str, object]:
        """Return the suggestion for the caller's remaining macros."""
        user_id = _require_user(x_user_id)
        state_container: AppContainer = request.app.state.container
        return _format_suggestion(
            state_container.meal_helper_service.current_suggestion(user_id)
        )

    return app


def _session(request: Request, user_id: str | None) -> RecognitionSession:
    container: AppContainer = request.app.state.container
    return container.sessions.get(_require_user(user_id))


def _require_user(user_id: str | None) -> str:
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Login required"
        )
    return user_id


def _format_snapshot(snapshot: SessionSnapshot) -> dict[str, object]:
    result = snapshot.result
    return {
        "state": snapshot.state.value,
        "image_selected": snapshot.image_selected,
        "grams": snapshot.grams,
        "candidates": [
            {"label": candidate.label, "score": candidate.score}
            for candidate in result.predictions
        ],
        "selected_label": result.selected_label,
        "pending_label": snapshot.pending_label,
        "needs_pick": snapshot.needs_pick,
        "nutrition": _format_nutrition(result.nutrition),
        "error": snapshot.error,
        "save_message": snapshot.save_message,
        "sync_message": snapshot.sync_message,
    }


def _format_nutrition(nutrition: NutritionProfile | None) -> dict[str, object] | None:
    if nutrition is None:
        return None
    return {
        "label": nutrition.label,
        "grams": nutrition.grams,
        "calories": round(nutrition.energy),
        "protein_g": round(nutrition.protein),
        "carbs_g": round(nutrition.carbohydrate),
        "fat_g": round(nutrition.fat),
        "nutrients": dict(nutrition.nutrients),
    }


def _format_macros(macros: MacroTargets) -> dict[str, float]:
    return {
        "calories": macros.calories,
        "protein_g": macros.protein_g,
        "carbs_g": macros.carbs_g,
        "fat_g": macros.fat_g,
    }


def _format_suggestion(suggestion: Suggestion) -> dict[str, object]:
    return {
        "name": suggestion.template.name,
        "factor": suggestion.factor,
        "calories": suggestion.macros.calories,
        "protein_g": suggestion.macros.protein_g,
        "carbs_g": suggestion.macros.carbs_g,
        "fat_g": suggestion.macros.fat_g,
    }
