"""GitHub webhook endpoint"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Request
from pydantic import ValidationError

from threadbridge.config import settings
from threadbridge.models.webhook import WebhookEvent
from threadbridge.security import WebhookSignatureVerifier
from threadbridge.services.webhook_handlers import WebhookHandlers

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])

verify_webhook_signature = WebhookSignatureVerifier(settings.webhook_secret)


def get_webhook_handlers(request: Request) -> WebhookHandlers:
    """Inbound handlers built at startup (see main.lifespan)"""
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None:
        raise HTTPException(status_code=503, detail="Service is starting")
    return runtime.webhooks


@router.get("/github")
async def github_webhook_info():
    return {"msg": "github webhooks work"}


@router.post("/github", dependencies=[Depends(verify_webhook_signature)])
async def github_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_github_event: Optional[str] = Header(default=None),
    handlers: WebhookHandlers = Depends(get_webhook_handlers),
):
    """Acknowledge the delivery at once and mirror it in the background."""
    if x_github_event == "ping":
        return {"msg": "pong"}

    try:
        payload = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Body is not valid JSON")

    try:
        event = WebhookEvent.model_validate(payload)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))

    background_tasks.add_task(handlers.dispatch, event)
    return {"msg": "ok"}
