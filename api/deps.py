import hashlib
import hmac
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from models.enums import ActorRole
from services.collaborators import Collaborators, get_collaborators
from services.leasing import LeasingService
from services.orchestrator import Actor, LifecycleOrchestrator
from services.vendors import VendorService

logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = "sha256="


async def get_actor(
    x_actor_id: Optional[str] = Header(None),
    x_actor_role: Optional[str] = Header(None),
) -> Actor:
    """Caller identity, asserted by the upstream gateway through X-Actor-Id / X-Actor-Role."""
    if not x_actor_id or not x_actor_role:
        raise HTTPException(status_code=401, detail="X-Actor-Id and X-Actor-Role headers are required")
    try:
        role = ActorRole(x_actor_role.upper())
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Unknown actor role: {x_actor_role}")
    return Actor(id=x_actor_id, role=role)


def webhook_signature(body: bytes, secret: str) -> str:
    """Value a provider sends in X-Webhook-Signature for ``body``."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


async def verify_webhook_signature(
    request: Request,
    x_webhook_signature: Optional[str] = Header(None),
) -> None:
    if not settings.webhook_secret:
        logger.error("webhook rejected: WEBHOOK_SECRET is not configured")
        raise HTTPException(status_code=503, detail="Webhook verification is not configured")
    if not x_webhook_signature:
        raise HTTPException(status_code=400, detail="X-Webhook-Signature header is required")
    expected = webhook_signature(await request.body(), settings.webhook_secret)
    if not hmac.compare_digest(expected.encode("utf-8"), x_webhook_signature.strip().encode("utf-8")):
        logger.warning("webhook signature mismatch on %s", request.url.path)
        raise HTTPException(status_code=400, detail="Webhook signature verification failed")


def get_orchestrator() -> LifecycleOrchestrator:
    return LifecycleOrchestrator()


async def get_service(
    db: AsyncSession = Depends(get_db),
    collaborators: Collaborators = Depends(get_collaborators),
    orchestrator: LifecycleOrchestrator = Depends(get_orchestrator),
) -> LeasingService:
    return LeasingService(db, collaborators, orchestrator)


async def get_vendor_service(
    db: AsyncSession = Depends(get_db),
    orchestrator: LifecycleOrchestrator = Depends(get_orchestrator),
) -> VendorService:
    return VendorService(db, orchestrator)
