"""Rendering hints handed to output sinks alongside rasters and charts."""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class LayerSpec:
    """Describes how a sink should present one output layer.

    The core only promises band names and value ranges; palettes and class
    labels are hints the sink is free to ignore.
    """
    name: str
    band: str
    value_range: Optional[Tuple[float, float]] = None
    palette: Tuple[str, ...] = ()
    class_labels: Dict[int, str] = field(default_factory=dict)
    visible: bool = True

    @property
    def is_discrete(self) -> bool:
        return bool(self.class_labels)

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization."""
        return {
            'name': self.name,
            'band': self.band,
            'value_range': list(self.value_range) if self.value_range else None,
            'palette': list(self.palette),
            'class_labels': {str(k): v for k, v in self.class_labels.items()},
            'visible': self.visible
        }
