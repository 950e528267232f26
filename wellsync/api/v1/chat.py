"""Chat with the wellness assistant."""

from dataclasses import asdict

from fastapi import APIRouter

from wellsync.api.deps import Services
from wellsync.schemas.chat import SendMessageBody

router = APIRouter(prefix="/chat", tags=["chat"])


@router.get("/history", summary="Visible chat transcript")
async def get_history(services: Services) -> list[dict]:
    return [asdict(m) for m in services.assistant.messages]


@router.post("/send", summary="Send chat message and wait for the reply")
async def send_message(services: Services, body: SendMessageBody) -> dict:
    """Blank messages are ignored. AI failures come back as an "Error: ..." reply."""
    task = services.assistant.send_message(body.message)
    reply = await task if task is not None else None
    return {"reply": reply, "messages": [asdict(m) for m in services.assistant.messages]}
