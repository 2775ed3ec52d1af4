from __future__ import annotations

import logging
from typing import List, NoReturn, Optional

from fastapi import FastAPI, HTTPException, Response, status
from pydantic import BaseModel, Field, field_validator

from minibf.console import StringInput, discard_output
from minibf.errors import BFError
from minibf.instructions import Instructions
from minibf.program import Program
from minibf.visualizer import ExecutionState, StepLimitExceeded, VisualizerSession

from .session import SessionRecord, SessionStore

logger = logging.getLogger(__name__)


def _state_to_dict(state: ExecutionState) -> dict:
    return {
        "step": state.step,
        "pc": state.pc,
        "command": state.command,
        "pointer": state.pointer,
        "tape_start": state.tape_start,
        "tape": list(state.tape),
        "output": state.output,
        "code_length": state.code_length,
        "loop_depth": state.loop_depth,
        "remaining_input": state.remaining_input,
    }


def _error_to_dict(error: BFError) -> dict:
    return {"kind": error.kind.value, "message": error.message}


def _calculate_total_steps(
    instructions: Instructions, input_template: str, cap: int = 10000
) -> tuple[int, bool]:
    program = Program(instructions)
    feed = StringInput(input_template)
    total = 0
    try:
        while not program.done():
            if total >= cap:
                return total, True
            program.step(feed, discard_output)
            total += 1
    except BFError:
        pass
    return total, False


class SessionConfiguration(BaseModel):
    code: str = ""
    input: str = ""
    tape_window: int = Field(default=10, ge=0)
    max_steps: Optional[int] = Field(default=None, ge=1)
    history_limit: int = Field(default=200, ge=1)
    optimize: bool = False

    @field_validator("input")
    @classmethod
    def validate_input(cls, value: str) -> str:
        # Windows line endings would feed an extra carriage return to the program.
        return value.replace("\r\n", "\n")


class SessionState(BaseModel):
    step: int
    pc: int
    command: Optional[str]
    pointer: int
    tape_start: int
    tape: List[int]
    output: str
    code_length: int
    loop_depth: int
    remaining_input: str


class ErrorDetail(BaseModel):
    kind: str
    message: str


class SessionPayload(BaseModel):
    session_id: str
    code: str
    state: SessionState
    history: List[SessionState]
    finished: bool
    history_size: int
    breakpoints: List[int]
    hit_breakpoint: Optional[int]
    error: Optional[ErrorDetail]
    total_steps: int
    total_steps_capped: bool


class StepResponse(SessionPayload):
    states: List[SessionState]


class StepRequest(BaseModel):
    count: int = Field(default=1, ge=1)


class RunRequest(BaseModel):
    limit: Optional[int] = Field(default=None, ge=1)
    ignore_breakpoints: bool = False


class BreakpointRequest(BaseModel):
    pc: int = Field(ge=0)


def create_app(store: Optional[SessionStore] = None) -> FastAPI:
    session_store = store if store is not None else SessionStore()
    app = FastAPI(title="minibf WebUI API", version="0.1.0")

    def _get_record(session_id: str) -> SessionRecord:
        try:
            return session_store.get(session_id)
        except KeyError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    def _history_states(session: VisualizerSession) -> List[SessionState]:
        return [SessionState(**_state_to_dict(state)) for state in session.history]

    def _payload_fields(record: SessionRecord) -> dict:
        session = record.session
        return {
            "session_id": record.session_id,
            "code": session.code_text,
            "state": SessionState(**_state_to_dict(session.current_state())),
            "history": _history_states(session),
            "finished": session.is_finished(),
            "history_size": len(session.history),
            "breakpoints": session.list_breakpoints(),
            "hit_breakpoint": session.hit_breakpoint,
            "error": ErrorDetail(**_error_to_dict(session.error)) if session.error is not None else None,
            "total_steps": record.total_steps,
            "total_steps_capped": record.total_steps_capped,
        }

    def _raise_conflict(exc: Exception) -> NoReturn:
        if isinstance(exc, BFError):
            detail: object = _error_to_dict(exc)
        else:
            detail = str(exc)
        logger.debug("Session request rejected: %s", exc)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail) from exc

    @app.post("/api/session", response_model=SessionPayload, status_code=status.HTTP_201_CREATED)
    def create_session(payload: SessionConfiguration) -> SessionPayload:
        record = session_store.create_session(
            code=payload.code,
            input_template=payload.input,
            tape_window=payload.tape_window,
            max_steps=payload.max_steps,
            history_limit=payload.history_limit,
            optimize=payload.optimize,
        )
        record.total_steps, record.total_steps_capped = _calculate_total_steps(
            record.session.instructions,
            payload.input,
        )
        return SessionPayload(**_payload_fields(record))

    @app.get("/api/session/{session_id}", response_model=SessionPayload)
    def get_session(session_id: str) -> SessionPayload:
        return SessionPayload(**_payload_fields(_get_record(session_id)))

    @app.post("/api/session/{session_id}/reset", response_model=SessionPayload)
    def reset_session(session_id: str) -> SessionPayload:
        _get_record(session_id)
        record = session_store.reset(session_id)
        return SessionPayload(**_payload_fields(record))

    @app.post("/api/session/{session_id}/step", response_model=StepResponse)
    def step_session(session_id: str, payload: StepRequest) -> StepResponse:
        record = _get_record(session_id)
        try:
            states = record.session.step_forward(payload.count)
        except (StepLimitExceeded, BFError) as exc:
            _raise_conflict(exc)
        return StepResponse(
            states=[SessionState(**_state_to_dict(state)) for state in states],
            **_payload_fields(record),
        )

    @app.post("/api/session/{session_id}/run", response_model=StepResponse)
    def run_session(session_id: str, payload: RunRequest) -> StepResponse:
        record = _get_record(session_id)
        session = record.session
        original_breakpoints: Optional[set[int]] = None
        if payload.ignore_breakpoints:
            original_breakpoints = set(session.breakpoints)
            session.clear_breakpoints()
            session.hit_breakpoint = None

        try:
            states = list(session.run_until_break(payload.limit))
        except (StepLimitExceeded, BFError) as exc:
            _raise_conflict(exc)
        finally:
            if original_breakpoints is not None:
                session.breakpoints = original_breakpoints
                session.hit_breakpoint = None

        return StepResponse(
            states=[SessionState(**_state_to_dict(state)) for state in states],
            **_payload_fields(record),
        )

    @app.post("/api/session/{session_id}/breakpoints", response_model=SessionPayload)
    def add_breakpoint(session_id: str, payload: BreakpointRequest) -> SessionPayload:
        record = _get_record(session_id)
        record.session.add_breakpoint(payload.pc)
        return SessionPayload(**_payload_fields(record))

    @app.delete("/api/session/{session_id}/breakpoints/{pc}", response_model=SessionPayload)
    def remove_breakpoint(session_id: str, pc: int) -> SessionPayload:
        record = _get_record(session_id)
        if not record.session.remove_breakpoint(pc):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Breakpoint not found at pc={pc}",
            )
        return SessionPayload(**_payload_fields(record))

    @app.delete("/api/session/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_session(session_id: str) -> Response:
        if not session_store.remove(session_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Unknown session id: {session_id}",
            )
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return app


__all__ = ["create_app"]
