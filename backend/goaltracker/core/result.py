from dataclasses import dataclass, field
from typing import Any


@dataclass
class Result:
    """Uniform outcome of a core operation. Core code returns these instead of raising."""

    success: bool
    value: Any = None
    error: str | None = None
    extra: dict = field(default_factory=dict)

    @classmethod
    def ok(cls, value: Any = None, **extra) -> "Result":
        return cls(True, value, None, extra)

    @classmethod
    def fail(cls, error: str) -> "Result":
        return cls(False, None, error)


def validation_message(e) -> str:
    """Flatten a pydantic ValidationError into 'field: message; ...'."""
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "__root__")
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)
