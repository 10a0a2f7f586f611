from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field

from mindcare.api.service import JournalService
from mindcare.auth.session import Session
from mindcare.utils.config import Settings, get_settings
from mindcare.utils.exceptions import (
    AuthenticationError,
    ErrorCategory,
    MindCareError,
)
from mindcare.utils.logger import get_logger

logger = get_logger(__name__)

STATUS_BY_CATEGORY = {
    ErrorCategory.STORAGE: 507,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.VALIDATION: 422,
    ErrorCategory.AUTHENTICATION: 401,
    ErrorCategory.ANALYSIS: 503,
}


class Credentials(BaseModel):
    name: str
    password: str


class RenameRequest(BaseModel):
    name: str


class DayRequest(BaseModel):
    morning: str
    afternoon: str
    evening: str


class EntryPatch(BaseModel):
    morning: Optional[str] = None
    afternoon: Optional[str] = None
    evening: Optional[str] = None
    morning_mood: Optional[str] = None
    afternoon_mood: Optional[str] = None
    evening_mood: Optional[str] = None
    overall_mood: Optional[str] = None
    morning_score: Optional[int] = Field(default=None)
    afternoon_score: Optional[int] = Field(default=None)
    evening_score: Optional[int] = Field(default=None)
    overall_score: Optional[int] = Field(default=None)
    morning_tip: Optional[str] = None
    afternoon_tip: Optional[str] = None
    evening_tip: Optional[str] = None
    daily_summary: Optional[str] = None


def create_app(service: Optional[JournalService] = None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    cookie = settings.session_cookie

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "service", None) is None:
            app.state.service = JournalService.from_settings(settings)
        logger.info("webapp_started", provider=app.state.service.gateway.provider.name)
        yield
        await app.state.service.close()

    app = FastAPI(title="MindCare Journal", version="1.0", lifespan=lifespan)
    app.state.service = service

    def get_service(request: Request) -> JournalService:
        return request.app.state.service

    def get_session(request: Request, svc: JournalService = Depends(get_service)) -> Session:
        return svc.sessions.require(request.cookies.get(cookie, ""))

    @app.exception_handler(MindCareError)
    async def mindcare_error_handler(request: Request, exc: MindCareError) -> JSONResponse:
        status = STATUS_BY_CATEGORY.get(exc.category, 500)
        if isinstance(exc, AuthenticationError) and exc.conflict:
            status = 409
        logger.warning("request_failed", path=request.url.path, status=status, error=str(exc))
        return JSONResponse({"error": exc.message, "category": exc.category.value}, status_code=status)

    # ─── Auth ───────────────────────────────────────────────────

    @app.post("/auth/signup")
    async def sign_up(body: Credentials, svc: JournalService = Depends(get_service)) -> JSONResponse:
        session = svc.sign_up(body.name, body.password)
        response = JSONResponse({"user": session.user.to_dict()})
        response.set_cookie(cookie, session.token, httponly=True, samesite="lax")
        return response

    @app.post("/auth/signin")
    async def sign_in(body: Credentials, svc: JournalService = Depends(get_service)) -> JSONResponse:
        session = svc.sign_in(body.name, body.password)
        response = JSONResponse({"user": session.user.to_dict()})
        response.set_cookie(cookie, session.token, httponly=True, samesite="lax")
        return response

    @app.post("/auth/signout")
    async def sign_out(request: Request, svc: JournalService = Depends(get_service)) -> JSONResponse:
        svc.sign_out(request.cookies.get(cookie, ""))
        response = JSONResponse({"success": True})
        response.delete_cookie(cookie)
        return response

    @app.get("/api/me")
    async def me(session: Session = Depends(get_session)) -> dict[str, Any]:
        return session.user.to_dict()

    @app.patch("/api/me")
    async def rename(body: RenameRequest, session: Session = Depends(get_session),
                     svc: JournalService = Depends(get_service)) -> dict[str, Any]:
        return svc.rename(session, body.name).to_dict()

    # ─── Journal ────────────────────────────────────────────────

    @app.post("/api/journal")
    async def record_day(body: DayRequest, session: Session = Depends(get_session),
                         svc: JournalService = Depends(get_service)) -> dict[str, Any]:
        entry = await svc.record_day(session, body.morning, body.afternoon, body.evening)
        return entry.to_dict()

    @app.get("/api/journal")
    async def list_journal(limit: Optional[int] = None, session: Session = Depends(get_session),
                           svc: JournalService = Depends(get_service)) -> list[dict[str, Any]]:
        return [e.to_dict() for e in svc.entries(session, limit)]

    @app.get("/api/journal/export.csv", response_class=PlainTextResponse)
    async def export_csv(session: Session = Depends(get_session),
                         svc: JournalService = Depends(get_service)) -> PlainTextResponse:
        return PlainTextResponse(
            svc.export_csv(session),
            media_type="text/csv",
            headers={"Content-Disposition": "attachment; filename=journal.csv"},
        )

    @app.patch("/api/journal/{entry_id}")
    async def update_entry(entry_id: str, body: EntryPatch, session: Session = Depends(get_session),
                           svc: JournalService = Depends(get_service)) -> dict[str, Any]:
        patch = body.model_dump(exclude_none=True)
        return svc.update_entry(session, entry_id, patch).to_dict()

    @app.delete("/api/journal/{entry_id}")
    async def delete_entry(entry_id: str, session: Session = Depends(get_session),
                           svc: JournalService = Depends(get_service)) -> dict[str, Any]:
        return {"deleted": svc.delete_entry(session, entry_id)}

    # ─── Dashboard ──────────────────────────────────────────────

    @app.get("/api/dashboard")
    async def dashboard(window: Optional[int] = None, session: Session = Depends(get_session),
                        svc: JournalService = Depends(get_service)) -> dict[str, Any]:
        return await svc.dashboard(session, window)

    @app.get("/api/stats")
    async def stats(session: Session = Depends(get_session),
                    svc: JournalService = Depends(get_service)) -> dict[str, Any]:
        return svc.stats(session)

    @app.delete("/api/data")
    async def wipe(session: Session = Depends(get_session),
                   svc: JournalService = Depends(get_service)) -> JSONResponse:
        svc.wipe(session)
        response = JSONResponse({"success": True})
        response.delete_cookie(cookie)
        return response

    @app.get("/health")
    async def health(svc: JournalService = Depends(get_service)) -> dict[str, Any]:
        store = svc.repository.store
        return {
            "status": "ok",
            "provider": svc.gateway.provider.name,
            "storage_bytes": store.size_bytes(),
            "storage_quota_bytes": store.quota_bytes,
        }

    return app
