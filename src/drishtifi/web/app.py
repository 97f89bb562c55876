from __future__ import annotations

import os
import secrets
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import Route
from starlette.staticfiles import StaticFiles

from ..app.dashboard import report_card
from ..app.export import export_filename, render_report_text
from ..app.session import GenerateFn, ReportSession
from ..app.uploads import read_image_upload
from ..config import load_default_theme
from ..errors import (
    SUBMISSION_PENDING,
    GenerationFailed,
    InvalidCredentials,
    MissingCredential,
    ValidationError,
)
from ..generation.client import ImageUpload
from ..logging import get_logger
from ..paths import find_project_root
from ..storage import CredentialStore, KeyValueStorage, PreferenceStore, ReportStore, SqliteStorage


LOG = get_logger("web")


async def _read_json(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Request body must be JSON") from exc
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return body


async def _read_upload(form: Any, field: str) -> Optional[ImageUpload]:
    upload = form.get(field)
    if not isinstance(upload, UploadFile):
        return None
    data = await upload.read()
    return read_image_upload(data, upload.content_type, upload.filename)


def create_app(
    root_dir: Optional[str] = None,
    *,
    storage: Optional[KeyValueStorage] = None,
    generate: Optional[GenerateFn] = None,
    clock: Optional[Callable[[], datetime]] = None,
    static_dir: Optional[str] = None,
    allow_origins: Optional[List[str]] = None,
    serve_static: bool = True,
) -> Starlette:
    """Create a Starlette app exposing the report API and an optional static frontend."""

    project_root = find_project_root(root_dir)
    kv = storage if storage is not None else SqliteStorage(root_dir=project_root)
    users = CredentialStore(kv)
    report_store = ReportStore(kv)
    preferences = PreferenceStore(kv, default_theme=load_default_theme(project_root))
    sessions: Dict[str, ReportSession] = {}

    def _new_session() -> ReportSession:
        kwargs: Dict[str, Any] = {"generate": generate}
        if clock is not None:
            kwargs["clock"] = clock
        return ReportSession(users, report_store, **kwargs)

    def _session_for(request: Request) -> Tuple[str, ReportSession]:
        auth = request.headers.get("authorization") or ""
        scheme, _, token = auth.partition(" ")
        session = sessions.get(token.strip()) if scheme.lower() == "bearer" else None
        if session is None or not session.current_user:
            raise HTTPException(status_code=401, detail="Please login first.")
        return token.strip(), session

    def _report_or_404(session: ReportSession, report_id: str):
        try:
            return session.get_report(report_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail="Report not found") from exc

    async def health(_: Request) -> JSONResponse:
        return JSONResponse({"status": "ok", "sessions": len(sessions)})

    async def login(request: Request) -> JSONResponse:
        body = await _read_json(request)
        session = _new_session()
        username = session.login(str(body.get("username") or ""), str(body.get("password") or ""))
        # one live token per officer
        stale = [t for t, s in sessions.items() if s.current_user == username]
        for old in stale:
            sessions.pop(old, None)
        if stale:
            LOG.info("Replaced %d earlier session(s) for %r", len(stale), username)
        token = secrets.token_urlsafe(24)
        sessions[token] = session
        return JSONResponse({"token": token, "username": username, "report_count": len(session.reports)})

    async def signup(request: Request) -> JSONResponse:
        body = await _read_json(request)
        session = _new_session()
        username = session.signup(
            str(body.get("username") or ""),
            str(body.get("password") or ""),
            str(body.get("confirm_password") or ""),
        )
        return JSONResponse({"username": username, "message": session.notice}, status_code=201)

    async def logout(request: Request) -> JSONResponse:
        token, session = _session_for(request)
        session.logout()
        sessions.pop(token, None)
        return JSONResponse({"status": "logged_out"})

    async def list_reports(request: Request) -> JSONResponse:
        _, session = _session_for(request)
        search = request.query_params.get("search") or None
        items = session.dashboard(search)
        return JSONResponse(
            {
                "username": session.current_user,
                "items": [report_card(r) for r in items],
                "count": len(items),
                "total": len(session.reports),
            }
        )

    async def create_report(request: Request) -> JSONResponse:
        _, session = _session_for(request)
        form = await request.form()
        try:
            shop_name = str(form.get("shop_name") or "")
            inventory = await _read_upload(form, "inventory_image")
            ledger = await _read_upload(form, "ledger_image")
        finally:
            await form.close()
        session.begin_submission(shop_name, inventory, ledger)
        report = await run_in_threadpool(session.finish_submission, shop_name, inventory, ledger)
        return JSONResponse(report_card(report), status_code=201)

    async def report_detail(request: Request) -> JSONResponse:
        _, session = _session_for(request)
        report = _report_or_404(session, request.path_params["report_id"])
        return JSONResponse(report_card(report))

    async def report_export(request: Request) -> Response:
        _, session = _session_for(request)
        report = _report_or_404(session, request.path_params["report_id"])
        return PlainTextResponse(
            render_report_text(report),
            headers={"Content-Disposition": f'attachment; filename="{export_filename(report)}"'},
        )

    async def progress(request: Request) -> JSONResponse:
        _, session = _session_for(request)
        payload = session.progress.snapshot().to_dict()
        payload["view"] = session.view
        return JSONResponse(payload)

    async def theme(request: Request) -> JSONResponse:
        if request.method == "DELETE":
            current = preferences.reset_theme()
        elif request.method == "PUT":
            body = await _read_json(request)
            value = body.get("theme")
            current = preferences.toggle_theme() if value == "toggle" else preferences.set_theme(str(value))
        else:
            current = preferences.get_theme()
        return JSONResponse({"theme": current})

    async def on_http_error(_: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse({"detail": exc.detail}, status_code=exc.status_code)

    async def on_validation_error(_: Request, exc: ValidationError) -> JSONResponse:
        status = 409 if exc.code == SUBMISSION_PENDING else 400
        return JSONResponse({"detail": exc.message, "code": exc.code}, status_code=status)

    async def on_invalid_credentials(_: Request, exc: InvalidCredentials) -> JSONResponse:
        return JSONResponse({"detail": exc.message}, status_code=401)

    async def on_generation_failed(_: Request, exc: GenerationFailed) -> JSONResponse:
        return JSONResponse({"detail": exc.message}, status_code=502)

    async def on_missing_credential(_: Request, exc: MissingCredential) -> JSONResponse:
        LOG.error("Report generation is not configured: %s", exc)
        return JSONResponse({"detail": str(exc)}, status_code=500)

    routes = [
        Route("/api/health", health, methods=["GET"]),
        Route("/api/login", login, methods=["POST"]),
        Route("/api/signup", signup, methods=["POST"]),
        Route("/api/logout", logout, methods=["POST"]),
        Route("/api/reports", list_reports, methods=["GET"]),
        Route("/api/reports", create_report, methods=["POST"]),
        Route("/api/reports/{report_id:str}", report_detail, methods=["GET"]),
        Route("/api/reports/{report_id:str}/export", report_export, methods=["GET"]),
        Route("/api/progress", progress, methods=["GET"]),
        Route("/api/theme", theme, methods=["GET", "PUT", "DELETE"]),
    ]

    app = Starlette(
        debug=False,
        routes=routes,
        exception_handlers={
            HTTPException: on_http_error,
            ValidationError: on_validation_error,
            InvalidCredentials: on_invalid_credentials,
            GenerationFailed: on_generation_failed,
            MissingCredential: on_missing_credential,
        },
    )

    origins = allow_origins or ["http://localhost:5173", "http://127.0.0.1:5173"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if "*" in origins else origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if serve_static and static_dir:
        candidate = os.path.abspath(os.path.join(project_root, static_dir))
        if os.path.isdir(candidate):
            LOG.info("Serving static frontend from %s", candidate)
            app.mount("/", StaticFiles(directory=candidate, html=True), name="frontend")
        else:
            LOG.warning("Frontend directory not found at %s; API will run without static assets.", candidate)
    else:
        LOG.info("Static frontend serving disabled (API only mode).")

    return app


__all__ = ["create_app"]
