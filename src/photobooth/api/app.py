"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from starlette.datastructures import UploadFile as StarletteUploadFile

from photobooth.api.gallery import router as gallery_router
from photobooth.api.models import (
    CountdownRequest,
    DeletePhotoRequest,
    StatusRequest,
    UrlUploadRequest,
)
from photobooth.app_logging import configure_logging
from photobooth.containers import AppContainer
from photobooth.domain.errors import PhotoboothError
from photobooth.domain.uploads import UploadFile


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level, container.settings.log_dir)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        state_container.retry_sweep.start()
        state_container.expiry_sweep.start()
        yield
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(PhotoboothError)
    async def photobooth_error_handler(
        request: Request, exc: PhotoboothError
    ) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(exc.message, extra={"path": request.url.path})
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _bad_request(_describe_errors(exc.errors()))

    @app.exception_handler(ValidationError)
    async def body_validation_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        return _bad_request(_describe_errors(exc.errors()))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error", extra={"path": request.url.path})
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Internal server error"},
        )

    @app.get("/health")
    async def health(request: Request) -> dict[str, object]:
        """Health check with queue depths."""
        state_container: AppContainer = request.app.state.container
        active = state_container.state.active_session()
        return {
            "status": "ok",
            "activeSessionId": active.id if active else None,
            "sessions": state_container.state.store.count(),
            "pendingCommands": state_container.command_queue.pending(),
            "pendingRetries": len(state_container.retry_queue),
        }

    @app.post("/api/session/start")
    async def start_session(request: Request) -> dict[str, object]:
        """Start a new active session."""
        state_container: AppContainer = request.app.state.container
        session_id = state_container.session_service.start()
        return {"success": True, "sessionId": session_id}

    @app.get("/api/session/current")
    async def current_session(
        request: Request,
        session_id: str | None = Query(default=None, alias="sessionId"),
    ) -> dict[str, object]:
        """Return the requested or active session."""
        state_container: AppContainer = request.app.state.container
        return state_container.session_service.current(session_id).to_payload()

    @app.post("/api/session/trigger")
    async def trigger(request: Request) -> dict[str, object]:
        """Capture a photo for the active session."""
        state_container: AppContainer = request.app.state.container
        mode, message = await state_container.session_service.trigger()
        return {"success": True, "message": message, "mode": mode}

    @app.post("/api/session/countdown")
    async def countdown(
        request: Request, body: CountdownRequest | None = None
    ) -> dict[str, object]:
        """Start a countdown that ends in a capture."""
        state_container: AppContainer = request.app.state.container
        target = state_container.session_service.countdown(
            body.session_id if body else None
        )
        return {"success": True, "countdownTarget": int(target.timestamp() * 1000)}

    @app.get("/api/session/command")
    async def next_command(request: Request, wait: bool = False) -> dict[str, object]:
        """Hand the oldest pending command to a remote agent."""
        state_container: AppContainer = request.app.state.container
        command = await state_container.command_queue.poll(wait=wait)
        if command is None:
            return {"command": None}
        return command.to_payload()

    @app.post("/api/session/status")
    async def update_status(body: StatusRequest, request: Request) -> dict[str, object]:
        """Record the status reported by a camera agent."""
        state_container: AppContainer = request.app.state.container
        state_container.session_service.update_status(body.session_id, body.status)
        return {"success": True}

    @app.post("/api/session/finish")
    async def finish_session(request: Request) -> dict[str, object]:
        """Finish the active session and return its share link."""
        state_container: AppContainer = request.app.state.container
        result = state_container.session_service.finish(str(request.base_url))
        return result.to_payload()

    @app.post("/api/session/cancel")
    async def cancel_session(request: Request) -> dict[str, object]:
        """Discard the active session."""
        state_container: AppContainer = request.app.state.container
        session_id = state_container.session_service.cancel()
        return {"success": True, "sessionId": session_id}

    @app.get("/api/session/last-finished")
    async def last_finished(request: Request) -> dict[str, object]:
        """Return the most recently finished session for the QR display."""
        state_container: AppContainer = request.app.state.container
        return state_container.session_service.last_finished().to_payload()

    @app.delete("/api/session/photo")
    async def delete_photo(
        body: DeletePhotoRequest, request: Request
    ) -> dict[str, object]:
        """Remove one photo from a session."""
        state_container: AppContainer = request.app.state.container
        state_container.session_service.delete_photo(body.session_id, body.photo_id)
        return {"success": True}

    @app.post("/api/upload")
    async def upload(request: Request) -> dict[str, object]:
        """Upload files as multipart form data, or record an already stored photo."""
        state_container: AppContainer = request.app.state.container
        content_type = request.headers.get("content-type", "")
        if content_type.startswith(_FORM_TYPES):
            form = await request.form()
            files = [
                UploadFile(
                    filename=item.filename or "",
                    content_type=item.content_type or "",
                    data=await item.read(),
                )
                for item in [*form.getlist("photos"), *form.getlist("photo")]
                if isinstance(item, StarletteUploadFile)
            ]
            session_id = form.get("sessionId")
            report = await state_container.upload_service.upload_files(
                files,
                session_id=session_id if isinstance(session_id, str) else None,
                base_url=(
                    state_container.settings.public_base_url or str(request.base_url)
                ),
            )
            return report.to_payload()

        try:
            payload = await request.json()
        except ValueError:
            return _bad_request("Request body must be multipart form data or JSON")
        body = UrlUploadRequest.model_validate(payload)
        report = await state_container.upload_service.upload_by_url(
            body.session_id, body.public_id, body.cloudinary_url
        )
        return report.to_payload()

    static_dir = container.settings.static_dir
    if static_dir is not None:
        app.mount("/static", StaticFiles(directory=static_dir, html=True), "static")

    app.include_router(gallery_router)
    return app


_FORM_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"success": False, "error": message})


def _describe_errors(errors: list) -> str:
    """Return a short message for the first validation error."""
    if not errors:
        return "Invalid request"
    first = errors[0]
    if first.get("type") == "json_invalid":
        return "Malformed JSON body"
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message
