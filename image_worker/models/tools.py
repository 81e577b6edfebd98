"""Tool invocation result records."""

from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolResult(BaseModel):
    """Short free-text content plus an error flag, as returned to the caller."""

    model_config = ConfigDict(populate_by_name=True)

    content: List[TextContent] = Field(default_factory=list)
    is_error: bool = Field(default=False, alias="isError")

    @classmethod
    def text(cls, text: str, is_error: bool = False) -> "ToolResult":
        return cls(content=[TextContent(text=text)], is_error=is_error)


class ToolInfo(BaseModel):
    """Tool listing entry with its JSON argument schema."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str
    input_schema: dict = Field(alias="inputSchema")
