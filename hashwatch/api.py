from __future__ import annotations

import hmac
import json
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, RedirectResponse

from hashwatch.auth import AuthGate, issue_token
from hashwatch.freshness import utc_now
from hashwatch.http import RequestManager
from hashwatch.notifier import DiscordNotifier
from hashwatch.scan import ScanOptions, ScanOrchestrator, ScanSettings
from hashwatch.sources.apify import ApifyHashtagSource
from hashwatch.sources.base import PostSource
from hashwatch.store import JsonFileStore, LeadStore

logger = logging.getLogger("hashwatch.api")

INVALID_ACTION = {"error": "Invalid Action"}


class MonitorService:
    """Backs the single monitor endpoint: tag and run-flag actions plus scans."""

    def __init__(
        self,
        store: LeadStore,
        source: PostSource,
        notifier: DiscordNotifier | None = None,
        settings: ScanSettings | None = None,
        tag_override: list[str] | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.orchestrator = ScanOrchestrator(
            store=store,
            source=source,
            notifier=notifier,
            settings=settings,
            tag_override=tag_override,
            clock=clock,
        )

    def handle(self, body: Any) -> tuple[int, dict[str, Any]]:
        if not isinstance(body, dict):
            return 400, {"error": "Invalid request body"}

        action = body.get("action")
        tag = body.get("tag")

        if action == "start":
            self.store.set_running(True)
            return 200, {"success": True, "message": "Started"}
        if action == "stop":
            self.store.set_running(False)
            return 200, {"success": True, "message": "Stopped"}
        if action in ("add", "remove"):
            if not isinstance(tag, str) or not tag.strip():
                return 400, INVALID_ACTION
            try:
                if action == "add":
                    self.store.add_tag(tag)
                else:
                    self.store.remove_tag(tag)
            except ValueError:
                return 400, INVALID_ACTION
            return 200, {"success": True}
        if action == "load":
            return 200, self.store.load().to_dict()
        if action == "scan":
            options = _scan_options(body)
            if options is None:
                return 400, INVALID_ACTION
            return 200, self.orchestrator.run_scan(options).to_response()

        return 400, INVALID_ACTION


def _scan_options(body: dict[str, Any]) -> ScanOptions | None:
    limit = body.get("limit")
    if limit is not None:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            return None
    force = body.get("force")
    if force is not None and not isinstance(force, bool):
        return None
    return ScanOptions(force=bool(force), limit=limit)


def build_service(config: dict, clock: Callable[[], datetime] = utc_now) -> MonitorService:
    secrets = config["secrets"]
    scan_cfg = config["scan"]
    notify_cfg = config["notify"]

    source = ApifyHashtagSource(
        token=secrets.get("apify_token", ""),
        actor_id=scan_cfg["actor_id"],
        timeout_seconds=int(scan_cfg["actor_timeout_seconds"]),
    )
    notifier = DiscordNotifier(
        secrets.get("discord_webhook", ""),
        request_manager=RequestManager(timeout_seconds=int(config["http"]["timeout_seconds"])),
        pacing_seconds=float(notify_cfg["pacing_seconds"]),
        username=notify_cfg["username"],
        footer=notify_cfg["footer"],
    )
    return MonitorService(
        store=JsonFileStore(config["store"]["path"]),
        source=source,
        notifier=notifier,
        settings=ScanSettings.from_config(config),
        tag_override=config.get("tags") or None,
        clock=clock,
    )


def create_app(config: dict, service: MonitorService | None = None) -> FastAPI:
    service = service or build_service(config)
    auth_cfg = config["auth"]
    secret = config["secrets"].get("jwt_secret", "")
    password = config["secrets"].get("dashboard_password", "")
    cookie_name = auth_cfg["cookie_name"]
    gate = AuthGate(secret=secret, login_path=auth_cfg["login_path"], api_prefix=auth_cfg["api_prefix"])

    if not secret:
        logger.warning("JWT_SECRET is not set; every dashboard session will be rejected")

    app = FastAPI(title="hashwatch")
    app.state.service = service

    @app.middleware("http")
    async def auth_gate(request: Request, call_next):
        decision = gate.decide(request.url.path, request.cookies.get(cookie_name))
        if not decision.allow:
            return RedirectResponse(url=decision.redirect_to, status_code=307)
        return await call_next(request)

    @app.post("/api/monitor")
    async def monitor(request: Request) -> JSONResponse:
        try:
            raw = await request.body()
            try:
                body = json.loads(raw or b"null")
            except ValueError:
                return JSONResponse({"error": "Invalid request body"}, status_code=400)
            status, payload = await run_in_threadpool(service.handle, body)
            return JSONResponse(payload, status_code=status)
        except Exception as exc:  # noqa: BLE001
            logger.exception("monitor action failed")
            return JSONResponse({"error": str(exc)}, status_code=500)

    @app.get("/login")
    def login_page() -> dict:
        return {"message": "POST a JSON body with 'password' to sign in"}

    @app.post("/login")
    async def login(request: Request):
        try:
            body = await request.json()
        except ValueError:
            body = None
        supplied = body.get("password") if isinstance(body, dict) else None
        if not password or not secret or not isinstance(supplied, str):
            return JSONResponse({"error": "Invalid credentials"}, status_code=401)
        if not hmac.compare_digest(supplied.encode("utf-8"), password.encode("utf-8")):
            return JSONResponse({"error": "Invalid credentials"}, status_code=401)

        token = issue_token(secret, ttl_hours=float(auth_cfg["token_ttl_hours"]))
        response = RedirectResponse(url="/", status_code=303)
        response.set_cookie(
            cookie_name,
            token,
            httponly=True,
            samesite="lax",
            max_age=int(float(auth_cfg["token_ttl_hours"]) * 3600),
        )
        return response

    @app.post("/logout")
    def logout():
        response = RedirectResponse(url=auth_cfg["login_path"], status_code=303)
        response.delete_cookie(cookie_name)
        return response

    @app.get("/")
    def dashboard() -> dict:
        document = service.store.load()
        return {
            "leads": len(document.leads),
            "monitoredTags": document.monitored_tags,
            "isRunning": document.is_running,
        }

    return app
