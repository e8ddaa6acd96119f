"""
Pydantic Models and Schemas
===========================

Data models for the renderGeometricImage tool: incoming arguments, render
options, render results and the JSON Schema advertised to MCP clients.
"""

from typing import Optional, Dict, Any
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


RENDER_GEOMETRIC_IMAGE_TOOL = "renderGeometricImage"


class ImageFormat(str, Enum):
    """Output formats supported by the renderer."""

    SVG = "svg"
    PNG = "png"

    @property
    def mime_type(self) -> str:
        """MIME type of an image in this format."""
        if self is ImageFormat.SVG:
            return "image/svg+xml"
        return f"image/{self.value}"


class OutputParams(BaseModel):
    """Output options for a render."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    format: Optional[ImageFormat] = Field(
        None, description="Output format, configured default when omitted"
    )
    render_level: Optional[float] = Field(
        None, alias="renderLevel", description="PNG antialiasing level"
    )

    @field_validator("format", mode="before")
    @classmethod
    def empty_format_is_missing(cls, v: Any) -> Any:
        """An empty format string means the default format."""
        if v == "":
            return None
        return v


class RenderGeometricImageArguments(BaseModel):
    """Arguments of the renderGeometricImage tool."""

    model_config = ConfigDict(populate_by_name=True)

    asy_code: str = Field(..., alias="asyCode", description="The Asymptote code to execute")
    output_params: Optional[OutputParams] = Field(None, alias="outputParams")

    @property
    def format(self) -> Optional[ImageFormat]:
        """Requested format, None leaves the choice to the renderer's settings."""
        if self.output_params:
            return self.output_params.format
        return None

    @property
    def render_level(self) -> Optional[float]:
        # 0 and missing both fall back to the configured default
        if self.output_params and self.output_params.render_level:
            return self.output_params.render_level
        return None


class RenderResult(BaseModel):
    """Result of one Asymptote render."""

    image_data: bytes = Field(..., description="Rendered image bytes", exclude=True)
    base64_data: str = Field(..., description="Base64 encoded image data")
    format: ImageFormat = Field(..., description="Image format")
    file_size: int = Field(..., description="File size in bytes")
    exit_code: Optional[int] = Field(None, description="Renderer exit code")
    logs: str = Field("", description="Captured renderer output")

    @property
    def mime_type(self) -> str:
        return self.format.mime_type


RENDER_GEOMETRIC_IMAGE_INPUT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "asyCode": {"type": "string", "description": "The Asymptote code to execute."},
        "outputParams": {
            "type": "object",
            "properties": {
                "format": {
                    "type": "string",
                    "enum": [f.value for f in ImageFormat],
                    "description": "Output format (svg or png). Default: svg.",
                },
                "renderLevel": {
                    "type": "number",
                    "description": "Render level for PNG (e.g., 4 for 4x antialiasing). Default: 4.",
                },
            },
            "required": [],
            "additionalProperties": False,
        },
    },
    "required": ["asyCode"],
    "additionalProperties": False,
}
