from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from wondernav.config import MAX_KEY_BYTES


class ChatRequest(BaseModel):
    """Body of ``POST /chats``."""
    model_config = ConfigDict(extra="ignore")

    input: str = Field(..., min_length=1, max_length=MAX_KEY_BYTES)

    @field_validator("input")
    @classmethod
    def check_input(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("input must not be blank")
        if len(value.encode("utf-8")) > MAX_KEY_BYTES:
            raise ValueError(f"input must be at most {MAX_KEY_BYTES} bytes as UTF-8")
        return value


class ChatResponse(BaseModel):
    output: str


class ChatRecord(BaseModel):
    """One row of the chats table, keyed by ``input``."""

    input: str
    output: str
    model_id: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    expires_at: Optional[int] = None

    def to_item(self) -> Dict[str, Dict[str, str]]:
        """Serialize to DynamoDB's typed attribute format."""
        item = {
            "input": {"S": self.input},
            "output": {"S": self.output},
            "model_id": {"S": self.model_id},
            "created_at": {"S": self.created_at.isoformat()},
        }
        if self.expires_at is not None:
            item["expires_at"] = {"N": str(self.expires_at)}
        return item

    @classmethod
    def from_item(cls, item: Dict[str, Dict[str, Any]]) -> "ChatRecord":
        expires = item.get("expires_at", {}).get("N")
        return cls(
            input=item["input"]["S"],
            output=item["output"]["S"],
            model_id=item.get("model_id", {}).get("S", ""),
            created_at=item["created_at"]["S"] if "created_at" in item else datetime.now(timezone.utc),
            expires_at=int(expires) if expires is not None else None,
        )
