"""AI feedback response shapes.

Chat models answer either with a plain string or with an ordered list of
content blocks. Both forms are resolved into a tagged variant once, when the
response enters the system, so callers never inspect the raw shape again.
"""

from pydantic import BaseModel, Field
from typing import Any, List, Literal, Union


class EmptyAnalysisContent(IndexError):
    """Raised when a block-sequence response contains no blocks."""
    pass


class ContentBlock(BaseModel):
    """A single block of a multi-part model response."""
    type: str = "text"
    text: str = ""


class TextContent(BaseModel):
    kind: Literal["text"] = "text"
    text: str

    def first_text(self) -> str:
        return self.text


class BlockContent(BaseModel):
    kind: Literal["blocks"] = "blocks"
    blocks: List[ContentBlock] = Field(default_factory=list)

    def first_text(self) -> str:
        if not self.blocks:
            raise EmptyAnalysisContent("Analysis response contained no content blocks")
        return self.blocks[0].text


MessageContent = Union[TextContent, BlockContent]


def resolve_content(raw: Any) -> MessageContent:
    """Resolve a raw model ``content`` value into a tagged variant.

    Strings become ``TextContent``. Lists become ``BlockContent``; each item may
    be a dict with a ``text`` key, an object with a ``text`` attribute, or a bare
    string.
    """
    if isinstance(raw, str):
        return TextContent(text=raw)

    if isinstance(raw, (list, tuple)):
        blocks: List[ContentBlock] = []
        for item in raw:
            if isinstance(item, str):
                blocks.append(ContentBlock(text=item))
            elif isinstance(item, dict):
                blocks.append(ContentBlock(
                    type=item.get("type", "text"),
                    text=item.get("text", ""),
                ))
            else:
                blocks.append(ContentBlock(
                    type=getattr(item, "type", "text"),
                    text=getattr(item, "text", ""),
                ))
        return BlockContent(blocks=blocks)

    raise TypeError(f"Unsupported message content type: {type(raw).__name__}")


class AnalysisMessage(BaseModel):
    content: MessageContent = Field(discriminator="kind")


class AnalysisResponse(BaseModel):
    """Response envelope returned by the AI feedback service."""
    message: AnalysisMessage

    @classmethod
    def from_content(cls, raw: Any) -> "AnalysisResponse":
        return cls(message=AnalysisMessage(content=resolve_content(raw)))

    @property
    def text(self) -> str:
        """The feedback text: the string itself, or the first block's text."""
        return self.message.content.first_text()
