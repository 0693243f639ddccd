"""Wizard sessions kept in Redis between requests, one per (flow, user)"""

import json
import logging

from fastapi import HTTPException

from .config import WIZARD_SESSION_TTL_SECONDS
from .rate_limiter import get_redis_client
from .wizard import Wizard, WizardFlow

logger = logging.getLogger(__name__)


class WizardSessionStore:
    def __init__(self, client=None, ttl_seconds: int = WIZARD_SESSION_TTL_SECONDS):
        self._client = client
        self.ttl_seconds = ttl_seconds

    @property
    def client(self):
        if self._client is None:
            try:
                self._client = get_redis_client()
            except Exception as e:
                raise HTTPException(
                    status_code=503, detail="Session storage temporarily unavailable"
                ) from e
        return self._client

    @staticmethod
    def key(flow: WizardFlow, uid: str) -> str:
        return f"wizard:{flow.name}:{uid}"

    def load(self, flow: WizardFlow, uid: str) -> Wizard:
        raw = self.client.get(self.key(flow, uid))
        if not raw:
            return Wizard(flow)
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning(f"⚠️ Discarding unreadable wizard session {self.key(flow, uid)}")
            return Wizard(flow)
        return Wizard.from_dict(flow, data)

    def save(self, wizard: Wizard, uid: str) -> None:
        self.client.setex(
            self.key(wizard.flow, uid), self.ttl_seconds, json.dumps(wizard.to_dict(), default=str)
        )

    def clear(self, flow: WizardFlow, uid: str) -> None:
        self.client.delete(self.key(flow, uid))

    def update(self, flow: WizardFlow, uid: str, fields: dict) -> dict:
        wizard = self.load(flow, uid)
        wizard.update(fields)
        self.save(wizard, uid)
        return wizard.snapshot()

    def advance(self, flow: WizardFlow, uid: str) -> dict:
        wizard = self.load(flow, uid)
        if wizard.advance():
            self.save(wizard, uid)
        return wizard.snapshot()

    def retreat(self, flow: WizardFlow, uid: str) -> dict:
        wizard = self.load(flow, uid)
        if wizard.retreat():
            self.save(wizard, uid)
        return wizard.snapshot()

    def reset(self, flow: WizardFlow, uid: str) -> dict:
        self.clear(flow, uid)
        return Wizard(flow).snapshot()


def get_wizard_store() -> WizardSessionStore:
    return WizardSessionStore()
