from __future__ import annotations

from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

OptionKey = Literal["A", "B", "C", "D"]
OPTION_KEYS: tuple[OptionKey, ...] = ("A", "B", "C", "D")


class Question(BaseModel):
    """Multiple-choice interview question."""

    prompt: str = Field(validation_alias=AliasChoices("question", "prompt"))
    options: dict[OptionKey, str | None] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    @field_validator("options", mode="before")
    @classmethod
    def _known_keys_only(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {key: text for key, text in value.items() if key in OPTION_KEYS}
        return value

    def presentable_options(self) -> list[tuple[OptionKey, str]]:
        """Options with non-empty text, in key order."""
        return [
            (key, text)
            for key in OPTION_KEYS
            if (text := self.options.get(key)) and text.strip()
        ]

    def option_texts(self) -> list[str]:
        return [text for _, text in self.presentable_options()]

    def key_for(self, option_text: str) -> OptionKey | None:
        for key, text in self.presentable_options():
            if text == option_text:
                return key
        return None


class Answer(BaseModel):
    """Recorded answer to one question."""

    question_index: int = Field(ge=0)
    option_key: OptionKey
    option_text: str

    model_config = ConfigDict(extra="forbid", frozen=True)

    def to_payload(self) -> dict[str, Any]:
        return {
            "question_index": self.question_index,
            "selected_option": self.option_key,
            "option_text": self.option_text,
        }
