"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status

from tiny_decisions.api.models import (
    AddOptionRequest,
    ProfileRequest,
    SaveWheelRequest,
    SpinRequest,
    SuggestionRequest,
)
from tiny_decisions.app_logging import configure_logging
from tiny_decisions.containers import AppContainer
from tiny_decisions.domain.decisions import HistoryEntry, SavedWheel
from tiny_decisions.domain.options import Option
from tiny_decisions.services.session import DecisionSession, TransitionResult


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        mode = state_container.session.start()
        logger.info("Decision session ready in %s", mode.value)
        yield
        state_container.session.teardown()
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/session")
    async def get_session(request: Request) -> dict[str, object]:
        """Return the current session state."""
        return _session(request).snapshot()

    @app.post("/options")
    async def add_option(body: AddOptionRequest, request: Request) -> dict[str, object]:
        """Add an option to the wheel."""
        session = _session(request)
        option = session.add_option(body.text)
        return {
            "added": _option_payload(option) if option else None,
            "session": session.snapshot(),
        }

    @app.delete("/options/{option_id}")
    async def remove_option(option_id: str, request: Request) -> dict[str, object]:
        """Remove an option from the wheel."""
        session = _session(request)
        removed = session.remove_option(option_id)
        return {"removed": removed, "session": session.snapshot()}

    @app.post("/spin")
    async def spin(
        request: Request, body: SpinRequest | None = None
    ) -> dict[str, object]:
        """Spin the wheel."""
        session = _session(request)
        forced_index = body.forced_index if body else None
        return _transition(session, session.start_spin(forced_index=forced_index))

    @app.post("/duo/start")
    async def duo_start(request: Request) -> dict[str, object]:
        """Begin duo pairing."""
        session = _session(request)
        return _transition(session, session.start_duo())

    @app.get("/duo/pairing")
    async def duo_pairing(request: Request) -> dict[str, object]:
        """Return the pairing link for the active duo setup."""
        state_container: AppContainer = request.app.state.container
        url = state_container.session.pairing_url(
            state_container.settings.pairing_base_url
        )
        if url is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return {
            "session_id": state_container.session.pairing_session_id,
            "pairing_url": url,
        }

    @app.post("/duo/cancel")
    async def duo_cancel(request: Request) -> dict[str, object]:
        """Cancel duo pairing."""
        session = _session(request)
        return _transition(session, session.cancel_duo())

    @app.post("/duo/pair")
    async def duo_pair(request: Request) -> dict[str, object]:
        """Mark pairing as complete."""
        session = _session(request)
        return _transition(session, session.complete_pairing())

    @app.post("/duo/finish")
    async def duo_finish(request: Request) -> dict[str, object]:
        """Finish the current participant's entry."""
        session = _session(request)
        return _transition(session, session.finish_input())

    @app.post("/duo/exit")
    async def duo_exit(request: Request) -> dict[str, object]:
        """Leave the duo session."""
        session = _session(request)
        return _transition(session, session.exit_duo())

    @app.post("/profile/open")
    async def profile_open(request: Request) -> dict[str, object]:
        """Open the profile screen."""
        session = _session(request)
        return _transition(session, session.open_profile())

    @app.post("/profile/close")
    async def profile_close(request: Request) -> dict[str, object]:
        """Close the profile screen."""
        session = _session(request)
        return _transition(session, session.close_profile())

    @app.put("/profile")
    async def update_profile(
        body: ProfileRequest, request: Request
    ) -> dict[str, object]:
        """Set the profile name."""
        session = _session(request)
        profile = session.update_profile(body.name)
        return {"profile": {"name": profile.name} if profile else None}

    @app.get("/wheels")
    async def list_wheels(request: Request) -> dict[str, object]:
        """Return saved wheels."""
        wheels = _session(request).saved_wheels()
        return {"wheels": [_wheel_payload(wheel) for wheel in wheels]}

    @app.post("/wheels")
    async def save_wheel(body: SaveWheelRequest, request: Request) -> dict[str, object]:
        """Save the current options as a named wheel."""
        wheel = _session(request).save_wheel(body.name)
        return {"wheel": _wheel_payload(wheel) if wheel else None}

    @app.delete("/wheels/{wheel_id}")
    async def delete_wheel(wheel_id: str, request: Request) -> dict[str, object]:
        """Delete a saved wheel."""
        wheels = _session(request).delete_wheel(wheel_id)
        return {"wheels": [_wheel_payload(wheel) for wheel in wheels]}

    @app.post("/wheels/{wheel_id}/load")
    async def load_wheel(wheel_id: str, request: Request) -> dict[str, object]:
        """Load a saved wheel into the session."""
        session = _session(request)
        return _transition(session, session.load_wheel(wheel_id))

    @app.get("/history")
    async def get_history(request: Request) -> dict[str, object]:
        """Return the decision history."""
        entries = _session(request).history()
        return {"history": [_history_payload(entry) for entry in entries]}

    @app.delete("/history")
    async def clear_history(request: Request) -> dict[str, str]:
        """Clear the decision history."""
        _session(request).clear_history()
        return {"status": "ok"}

    @app.post("/suggestions")
    async def suggestions(
        body: SuggestionRequest, request: Request
    ) -> dict[str, object]:
        """Generate option suggestions and optionally apply them."""
        state_container: AppContainer = request.app.state.container
        labels = await state_container.suggestion_service.suggest(body.topic)
        applied = False
        if body.apply:
            applied = state_container.session.apply_suggestions(labels).accepted
        return {
            "suggestions": labels,
            "applied": applied,
            "session": state_container.session.snapshot(),
        }

    return app


def _session(request: Request) -> DecisionSession:
    state_container: AppContainer = request.app.state.container
    return state_container.session


def _transition(
    session: DecisionSession, result: TransitionResult
) -> dict[str, object]:
    """Map a transition result to a response, raising on refused guards."""
    if result.error == "not_found":
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=result.message
        )
    if result.error:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": result.error, "message": result.message},
        )
    return {"accepted": result.accepted, "session": session.snapshot()}


def _option_payload(option: Option) -> dict[str, str]:
    return {"id": option.id, "text": option.text, "color": option.color}


def _wheel_payload(wheel: SavedWheel) -> dict[str, object]:
    return {
        "id": wheel.id,
        "name": wheel.name,
        "options": [_option_payload(option) for option in wheel.options],
        "created_at_ms": wheel.created_at_ms,
    }


def _history_payload(entry: HistoryEntry) -> dict[str, object]:
    return {
        "id": entry.id,
        "winner": _option_payload(entry.winner),
        "timestamp_ms": entry.timestamp_ms,
    }
