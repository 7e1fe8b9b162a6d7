"""Wire models for role-tagged chat-completion messages."""

from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, Field


class ImageURL(BaseModel):
    url: str


class TextPart(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ImagePart(BaseModel):
    type: Literal["image_url"] = "image_url"
    image_url: ImageURL


ContentPart = Union[TextPart, ImagePart]


class RoleMessage(BaseModel):
    """A single message sent to the completion endpoint."""

    role: Literal["system", "user", "assistant"]
    content: Union[str, list[ContentPart]] = Field(
        description="Plain text or a list of mixed text/image parts",
    )

    @classmethod
    def system(cls, text: str) -> "RoleMessage":
        return cls(role="system", content=text)

    @classmethod
    def user(cls, text: str) -> "RoleMessage":
        return cls(role="user", content=[TextPart(text=text)])

    @classmethod
    def assistant(cls, text: str) -> "RoleMessage":
        return cls(role="assistant", content=text)


__all__ = ["ContentPart", "ImagePart", "ImageURL", "RoleMessage", "TextPart"]
