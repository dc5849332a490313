"""Tool-call result envelope returned to the assistant host."""
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class ToolCallResult:
    content: List[Dict[str, str]] = field(default_factory=list)
    is_error: bool = False

    @classmethod
    def text(cls, text: str, is_error: bool = False) -> "ToolCallResult":
        return cls(content=[{"type": "text", "text": text}], is_error=is_error)

    @classmethod
    def from_data(cls, data: Any) -> "ToolCallResult":
        if isinstance(data, str):
            return cls.text(data)
        return cls.text(json.dumps(data, indent=2, ensure_ascii=False, default=str))

    @classmethod
    def error(cls, message: str) -> "ToolCallResult":
        return cls.text(f"Error: {message}", is_error=True)

    @property
    def first_text(self) -> str:
        return self.content[0]["text"] if self.content else ""

    def to_dict(self) -> Dict[str, Any]:
        return {"content": list(self.content), "isError": self.is_error}
