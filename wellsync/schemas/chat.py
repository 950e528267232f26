from dataclasses import dataclass

from pydantic import BaseModel


@dataclass(frozen=True)
class ChatMessage:
    text: str
    is_from_user: bool
    is_processing: bool = False


class SendMessageBody(BaseModel):
    message: str
