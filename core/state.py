"""Session state models shared across the generation loop."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum


@dataclass
class Message:
    role: str           # "user" or "assistant"
    content: str

    def to_dict(self) -> dict:
        return {"role": self.role, "content": self.content}


@dataclass
class CodeArtifact:
    code: str = ""


@dataclass(frozen=True)
class Fragment:
    text: str


@dataclass(frozen=True)
class FinalCleaned:
    text: str


# One decoded stream record. Either a partial text fragment or the
# cleaned replacement that closes a generation.
StreamEvent = Fragment | FinalCleaned


@dataclass(frozen=True)
class GenerationRequest:
    prompt: str
    messages: tuple[Message, ...] = ()
    current_code: str | None = None

    @property
    def mode(self) -> str:
        return "initial" if self.current_code is None else "fix"

    def to_payload(self) -> dict:
        payload = {
            "prompt": self.prompt,
            "messages": [m.to_dict() for m in self.messages],
        }
        if self.current_code is not None:
            payload["currentCode"] = self.current_code
        return payload


@dataclass
class ErrorObservation:
    message: str
    first_seen_at: float = field(default_factory=time.time)


@dataclass
class AutoFixState:
    attempts: int = 0
    in_progress: bool = False


class SessionPhase(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    AWAITING_ERROR_CHECK = "awaiting_error_check"
    AUTO_FIXING = "auto_fixing"
    EXHAUSTED = "exhausted"


@dataclass
class PreviewSnapshot:
    body_text: str = ""
    error_texts: list[str] = field(default_factory=list)     # text of elements flagged as errors
    diagnostics: list[str] = field(default_factory=list)     # page errors reported by the browser
