"""
Per-owner QR preferences and the QR style / colour scheme catalogue.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class ColorScheme:
    name: str
    foreground: str
    background: str
    accent: Optional[str] = None


QR_STYLES = {
    "square": "Classic Square",
    "rounded": "Rounded Corners",
    "dots": "Circular Dots",
}

COLOR_SCHEMES = {
    "classic": ColorScheme("Classic (Black & White)", "#000000", "#ffffff"),
    "blue": ColorScheme("Business Blue", "#1e40af", "#f0f9ff", "#3b82f6"),
    "green": ColorScheme("Nature Green", "#166534", "#f0fdf4", "#22c55e"),
    "purple": ColorScheme("Royal Purple", "#7c3aed", "#faf5ff", "#a855f7"),
    "red": ColorScheme("Energy Red", "#dc2626", "#fef2f2", "#ef4444"),
    "orange": ColorScheme("Warm Orange", "#ea580c", "#fff7ed", "#f97316"),
    "teal": ColorScheme("Ocean Teal", "#0f766e", "#f0fdfa", "#14b8a6"),
    "pink": ColorScheme("Soft Pink", "#be185d", "#fdf2f8", "#ec4899"),
}


class QrPreferences(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    style: str = "square"
    color_scheme: str = Field(default="classic", alias="colorScheme")

    def to_store(self) -> str:
        return self.model_dump_json(by_alias=True)
