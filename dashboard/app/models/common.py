"""Common base model and enums shared across all models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

DEFAULT_CATEGORY_COLOR = "#6b7280"


class ApiModel(BaseModel):
    """Base for every wire model.

    Fields are snake_case in Python and camelCase on the wire. Unknown keys
    sent by the server are ignored.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, object]:
        """Serialize to a camelCase JSON-ready dict, dropping unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Theme(str, Enum):
    """UI theme preference."""

    light = "light"
    dark = "dark"
    system = "system"


def format_bytes(num_bytes: int) -> str:
    """Render a byte count as a short human-readable string (e.g. '1.5 MB')."""
    if num_bytes <= 0:
        return "0 B"

    units = ["B", "KB", "MB", "GB", "TB"]
    value = float(num_bytes)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1

    # Trim trailing zeros the way the dashboard shows sizes (1.5 MB, 2 KB)
    rendered = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{rendered} {units[index]}"
