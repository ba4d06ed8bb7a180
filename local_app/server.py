from __future__ import annotations

from typing import List, Optional

from fastapi import FastAPI, HTTPException

from local_app.schemas import (
    FrameRequest,
    FrameResponse,
    HealthResponse,
    ScaleInfo,
    ScaleRequest,
    SessionCreateRequest,
    SessionResponse,
)
from local_app.sessions import SessionManager, SessionRecord
from swar_pipeline import __version__
from swar_pipeline.config import TunerConfig
from swar_pipeline.notes import CHROMATIC_NOTES, SCALE_ROOT_FREQUENCIES


def _session_to_response(record: SessionRecord) -> SessionResponse:
    payload = record.to_dict()
    payload["scale_root_name"] = CHROMATIC_NOTES[payload["scale_root"]]
    return SessionResponse(**payload)


def _require_session(app: FastAPI, session_id: str) -> SessionRecord:
    record = app.state.session_manager.get(session_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return record


def create_app(
    session_manager: SessionManager | None = None,
    default_config: Optional[TunerConfig] = None,
) -> FastAPI:
    app = FastAPI(title="Swar Tuner Local App", version=__version__)
    manager = session_manager or SessionManager(default_config=default_config)
    app.state.session_manager = manager

    @app.get("/api/health", response_model=HealthResponse)
    def api_health() -> HealthResponse:
        return HealthResponse(status="ok", sessions=len(manager.list()), version=__version__)

    @app.get("/api/scales", response_model=List[ScaleInfo])
    def api_scales() -> List[ScaleInfo]:
        return [
            ScaleInfo(name=name, index=CHROMATIC_NOTES.index(name), frequency_hz=freq)
            for name, freq in SCALE_ROOT_FREQUENCIES.items()
        ]

    @app.get("/api/sessions", response_model=List[SessionResponse])
    def api_sessions() -> List[SessionResponse]:
        return [_session_to_response(item) for item in manager.list()]

    @app.post("/api/sessions", response_model=SessionResponse, status_code=201)
    def api_create_session(payload: SessionCreateRequest) -> SessionResponse:
        try:
            record = manager.create(scale_root=payload.scale_root, swar_mode=payload.swar_mode)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _session_to_response(record)

    @app.get("/api/sessions/{session_id}", response_model=SessionResponse)
    def api_session(session_id: str) -> SessionResponse:
        return _session_to_response(_require_session(app, session_id))

    @app.delete("/api/sessions/{session_id}", status_code=204)
    def api_delete_session(session_id: str) -> None:
        if not manager.delete(session_id):
            raise HTTPException(status_code=404, detail="Session not found")

    @app.post("/api/sessions/{session_id}/start", response_model=SessionResponse)
    def api_start_session(session_id: str) -> SessionResponse:
        record = _require_session(app, session_id)
        manager.start(record)
        return _session_to_response(record)

    @app.post("/api/sessions/{session_id}/stop", response_model=SessionResponse)
    def api_stop_session(session_id: str) -> SessionResponse:
        record = _require_session(app, session_id)
        manager.stop(record)
        return _session_to_response(record)

    @app.put("/api/sessions/{session_id}/scale", response_model=SessionResponse)
    def api_set_scale(session_id: str, payload: ScaleRequest) -> SessionResponse:
        record = _require_session(app, session_id)
        try:
            manager.set_scale_root(record, payload.scale_root)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _session_to_response(record)

    @app.post("/api/sessions/{session_id}/frames", response_model=FrameResponse)
    def api_push_frame(session_id: str, payload: FrameRequest) -> FrameResponse:
        record = _require_session(app, session_id)
        output = manager.push_frame(record, payload.samples, payload.sample_rate, payload.timestamp)
        return FrameResponse(**output.to_dict())

    return app


app = create_app()
