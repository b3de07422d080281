from __future__ import annotations  # Payload scraped from the coding site by the browser extension

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ExtensionPayload(BaseModel):  # Flat record as posted by the extension
    problem_title: str = Field(default="", alias="problemTitle")
    problem_description: str = Field(default="", alias="problemDescription")
    editor_code: str = Field(default="", alias="editorCode")
    difficulty: str = ""
    url: str = ""
    language: str = ""
    timestamp: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    def changed_from(self, previous: Optional["ExtensionPayload"]) -> bool:
        """Title, code or difficulty differ from ``previous`` (or there is none)."""

        if previous is None:
            return True
        return (
            self.problem_title != previous.problem_title
            or self.editor_code != previous.editor_code
            or self.difficulty != previous.difficulty
        )

    def context_updates(self) -> Dict[str, Any]:
        updates: Dict[str, Any] = {}
        if self.problem_title.strip():
            updates["problem"] = {
                "title": self.problem_title.strip(),
                "description": self.problem_description,
                "difficulty": self.difficulty,
                "url": self.url,
            }
        if self.editor_code.strip():
            updates["code"] = {"language": self.language, "text": self.editor_code}
        return updates


__all__ = ["ExtensionPayload"]
