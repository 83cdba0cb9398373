from __future__ import annotations

import json
import logging
from enum import Enum
from http.client import HTTPException
from typing import Any, Optional
from urllib.request import Request, urlopen

from apscheduler.schedulers.background import BackgroundScheduler

from config import Settings, get_settings

logger = logging.getLogger(__name__)


class ShipResult(str, Enum):
    sent = "sent"
    queued = "queued"
    skipped = "skipped"
    failed = "failed"


class LogShipper:
    """Forwards log documents to the logs service.

    While started, documents are posted from a background scheduler thread so
    the originating request never waits on the logs service.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()
        self.scheduler = BackgroundScheduler(timezone=self.settings.timezone)

    @property
    def enabled(self) -> bool:
        return bool(self.settings.logs_service_url)

    def submit(self, doc: dict[str, Any]) -> ShipResult:
        if not self.enabled:
            return ShipResult.skipped
        if not self.scheduler.running:
            return self.push(doc)
        self.scheduler.add_job(self.push, args=[doc], misfire_grace_time=30)
        return ShipResult.queued

    def push(self, doc: dict[str, Any]) -> ShipResult:
        if not self.enabled:
            return ShipResult.skipped
        url = self.settings.logs_service_url.rstrip("/") + "/api/logs"
        body = json.dumps(doc, default=str).encode("utf-8")
        try:
            req = Request(
                url,
                data=body,
                method="POST",
                headers={"Content-Type": "application/json"},
            )
            with urlopen(req, timeout=self.settings.logs_timeout_secs) as resp:
                resp.read()
        except (OSError, HTTPException, ValueError) as exc:
            logger.warning(f"log_ship_failed: url={url} error={exc}")
            return ShipResult.failed
        return ShipResult.sent

    def start(self) -> None:
        if not self.enabled or self.scheduler.running:
            return
        self.scheduler.start()
        logger.info(f"Log shipper started for {self.settings.logs_service_url}")

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Log shipper stopped")
