"""
Install instructions produced by the pak installer.

The host applies them in order: set the mod type, then copy files and attach
attributes to the mod record. Modelled as a pydantic discriminated union on
``type`` so a serialized instruction list round-trips through JSON.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator

PAK_DICTIONARY_KEY = "pakDictionary"


class SetModTypeInstruction(BaseModel):
    type: Literal["setmodtype"] = "setmodtype"
    value: str


class CopyInstruction(BaseModel):
    type: Literal["copy"] = "copy"
    source: str
    destination: str

    @field_validator("destination")
    @classmethod
    def _not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("copy destination must not be empty")
        return v


class AttributeInstruction(BaseModel):
    type: Literal["attribute"] = "attribute"
    key: str
    value: Any


Instruction = Annotated[
    Union[SetModTypeInstruction, CopyInstruction, AttributeInstruction],
    Field(discriminator="type"),
]

_instruction_list = TypeAdapter(list[Instruction])


class InstallResult(BaseModel):
    instructions: list[Instruction] = Field(default_factory=list)

    def copies(self) -> list[CopyInstruction]:
        return [i for i in self.instructions if isinstance(i, CopyInstruction)]

    def attributes(self) -> dict[str, Any]:
        return {
            i.key: i.value
            for i in self.instructions
            if isinstance(i, AttributeInstruction)
        }

    def mod_type(self) -> str | None:
        for i in self.instructions:
            if isinstance(i, SetModTypeInstruction):
                return i.value
        return None

    def pak_dictionary(self) -> dict[str, str]:
        return dict(self.attributes().get(PAK_DICTIONARY_KEY, {}))


def parse_instructions(data: list[dict]) -> list[Instruction]:
    """Validate raw instruction dicts.

    Raises ``pydantic.ValidationError`` on an unknown ``type`` or missing field.
    """
    return _instruction_list.validate_python(data)
