"""Configuration record model."""
from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional

from .geometry import Size
from .options import CaseOptions


@dataclass
class Configuration:
    """One phone-case design: the uploaded image plus the chosen options."""

    id: str
    image_url: str
    width: int
    height: int
    cropped_image_url: Optional[str] = None
    color: Optional[str] = None
    model: Optional[str] = None
    material: Optional[str] = None
    finish: Optional[str] = None

    @property
    def image_size(self) -> Size:
        return Size(float(self.width), float(self.height))

    @property
    def options(self) -> Optional[CaseOptions]:
        if None in (self.color, self.model, self.material, self.finish):
            return None
        return CaseOptions(self.color, self.model, self.material, self.finish)  # type: ignore[arg-type]

    @property
    def is_complete(self) -> bool:
        return self.cropped_image_url is not None and self.options is not None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Configuration":
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})

    def __repr__(self) -> str:  # pragma: no cover - utility repr
        return f"<Configuration '{self.id}' ({self.width}x{self.height})>"
