"""FastAPI application that exposes a local web dashboard and API for timers."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, NoReturn, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, ConfigDict, Field

from .buttons import DEFAULT_TIMEOUT_SECONDS, button_applies_to, run_button_command
from .codec import format_date
from .commands import (
    archive_timer,
    remove_tag,
    rename_timer,
    set_start,
    set_stop,
    split_timer,
    start_timer,
    stop_timer,
    tag_timer,
)
from .dashboard import make_dashboard_entries, make_dashboard_entry
from .errors import (
    InvalidDateError,
    TimerAlreadyExistsError,
    TimerError,
    TimerNotFoundError,
    TimerStateError,
)
from .store import TimerStore

logger = logging.getLogger(__name__)

REFRESH_SECONDS = 10
BUTTON_TIMEOUT_SECONDS = DEFAULT_TIMEOUT_SECONDS


class StartPayload(BaseModel):
    name: str
    tags: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class SplitPayload(BaseModel):
    new_name: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class RenamePayload(BaseModel):
    new_name: str

    model_config = ConfigDict(extra="forbid")


class TagPayload(BaseModel):
    tag: str

    model_config = ConfigDict(extra="forbid")


class TimestampPayload(BaseModel):
    value: str

    model_config = ConfigDict(extra="forbid")


class ButtonRunPayload(BaseModel):
    timer: Optional[str] = None
    arguments: Dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


def create_app(*, store: Optional[TimerStore] = None) -> FastAPI:
    """Instantiate the FastAPI application."""
    resolved_store = store or TimerStore.from_config_file()

    app = FastAPI(title="mdtimer", version="0.1.0")

    @app.middleware("http")
    async def reject_cross_origin(request: Request, call_next):
        # Only pages served from this host may drive the API.
        origin = request.headers.get("origin")
        if origin is not None and origin != _own_origin(request):
            logger.warning(
                "Rejected %s %s from origin %s", request.method, request.url.path, origin
            )
            return JSONResponse(
                status_code=403, content={"detail": "Cross-origin requests are not allowed"}
            )
        return await call_next(request)

    app.state.store = resolved_store

    static_dir = Path(__file__).parent / "static"
    if static_dir.exists():
        app.mount("/static", StaticFiles(directory=static_dir), name="static")

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        store: TimerStore = request.app.state.store
        return {
            "timers_directory": str(store.timers_directory),
            "running_timer": store.first_running_name(),
            "refresh_seconds": REFRESH_SECONDS,
        }

    @app.get("/api/timers")
    def list_timers(request: Request) -> Dict[str, Any]:
        entries = make_dashboard_entries(request.app.state.store)
        return {
            "timers": [entry.to_payload() for entry in entries],
            "running": sum(1 for entry in entries if entry.is_running),
        }

    @app.get("/api/timers/{name}")
    def show_timer(name: str, request: Request) -> Dict[str, Any]:
        return _entry_payload(request.app.state.store, name)

    @app.post("/api/timers", status_code=201)
    def start(payload: StartPayload, request: Request) -> Dict[str, Any]:
        store: TimerStore = request.app.state.store
        name = payload.name.strip()
        if not name:
            raise HTTPException(status_code=400, detail="name is required")
        with _http_errors():
            start_timer(store, name, payload.tags)
        return _entry_payload(store, name)

    @app.post("/api/timers/{name}/stop")
    def stop(name: str, request: Request) -> Dict[str, Any]:
        store: TimerStore = request.app.state.store
        with _http_errors():
            stop_timer(store, name)
        return _entry_payload(store, name)

    @app.post("/api/timers/{name}/split")
    def split(name: str, payload: SplitPayload, request: Request) -> Dict[str, Any]:
        store: TimerStore = request.app.state.store
        with _http_errors():
            result = split_timer(store, name, payload.new_name)
        return {
            "stopped": _entry_payload(store, result.stopped.name),
            "started": _entry_payload(store, result.started.name),
            "split_time": format_date(result.split_time),
        }

    @app.post("/api/timers/{name}/archive")
    def archive(name: str, request: Request) -> Dict[str, Any]:
        with _http_errors():
            destination = archive_timer(request.app.state.store, name)
        return {"name": name, "archived_path": str(destination)}

    @app.post("/api/timers/{name}/rename")
    def rename(name: str, payload: RenamePayload, request: Request) -> Dict[str, Any]:
        store: TimerStore = request.app.state.store
        with _http_errors():
            destination = rename_timer(store, name, payload.new_name)
        return _entry_payload(store, destination.stem)

    @app.post("/api/timers/{name}/tags")
    def add_tag(name: str, payload: TagPayload, request: Request) -> Dict[str, Any]:
        store: TimerStore = request.app.state.store
        with _http_errors():
            change = tag_timer(store, name, payload.tag)
        return {"changed": change.changed, "timer": _entry_payload(store, name)}

    @app.delete("/api/timers/{name}/tags/{tag}")
    def delete_tag(name: str, tag: str, request: Request) -> Dict[str, Any]:
        store: TimerStore = request.app.state.store
        with _http_errors():
            change = remove_tag(store, name, tag)
        return {"changed": change.changed, "timer": _entry_payload(store, name)}

    @app.put("/api/timers/{name}/start-time")
    def update_start(name: str, payload: TimestampPayload, request: Request) -> Dict[str, Any]:
        store: TimerStore = request.app.state.store
        with _http_errors():
            set_start(store, name, payload.value)
        return _entry_payload(store, name)

    @app.put("/api/timers/{name}/stop-time")
    def update_stop(name: str, payload: TimestampPayload, request: Request) -> Dict[str, Any]:
        store: TimerStore = request.app.state.store
        with _http_errors():
            set_stop(store, name, payload.value)
        return _entry_payload(store, name)

    @app.get("/api/buttons")
    def list_buttons(request: Request) -> Dict[str, Any]:
        store: TimerStore = request.app.state.store
        return {
            "buttons": [
                {"index": index, **button.model_dump(mode="json")}
                for index, button in enumerate(store.config.custom_buttons)
            ]
        }

    @app.post("/api/buttons/{index}/run")
    def run_button(index: int, payload: ButtonRunPayload, request: Request) -> Dict[str, Any]:
        store: TimerStore = request.app.state.store
        buttons = store.config.custom_buttons
        if index < 0 or index >= len(buttons):
            raise HTTPException(status_code=404, detail="Button not found")
        button = buttons[index]

        record = None
        timer_path = None
        if payload.timer is not None:
            record = store.load(payload.timer)
            if record is None:
                raise HTTPException(status_code=404, detail=f"Timer '{payload.timer}' not found")
            timer_path = store.timer_path(payload.timer)
        if not button_applies_to(button, record):
            raise HTTPException(
                status_code=400,
                detail=f"Button '{button.title}' is not available here",
            )

        missing = [arg.name for arg in button.arguments if arg.name not in payload.arguments]
        if missing:
            raise HTTPException(
                status_code=400, detail=f"Missing arguments: {', '.join(missing)}"
            )

        result = run_button_command(
            button.command, timer_path, payload.arguments, timeout=BUTTON_TIMEOUT_SECONDS
        )
        return {
            "success": result.success,
            "exit_code": result.exit_code,
            "output": result.output,
        }

    @app.get("/")
    def index(request: Request):
        index_path = (Path(__file__).parent / "static" / "index.html").resolve()
        if not index_path.exists():
            raise HTTPException(status_code=404, detail="UI not found")
        return FileResponse(index_path)

    return app


def _entry_payload(store: TimerStore, name: str) -> Dict[str, Any]:
    record = store.load(name)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Timer '{name}' not found")
    return make_dashboard_entry(store, name, record).to_payload()


def _own_origin(request: Request) -> str:
    return f"{request.url.scheme}://{request.headers.get('host', '')}"


@contextmanager
def _http_errors() -> Iterator[None]:
    """Translate store and command failures into HTTP errors."""
    try:
        yield
    except InvalidDateError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except TimerError as exc:
        _raise_for_error(exc)
    except OSError as exc:
        logger.exception("File operation failed")
        raise HTTPException(status_code=500, detail=f"Error saving timer: {exc}") from exc


def _raise_for_error(exc: TimerError) -> NoReturn:
    status_code = 400
    if isinstance(exc, TimerNotFoundError):
        status_code = 404
    elif isinstance(exc, (TimerAlreadyExistsError, TimerStateError)):
        status_code = 409
    logger.debug("Timer operation failed: %s", exc)
    raise HTTPException(status_code=status_code, detail=str(exc)) from exc
