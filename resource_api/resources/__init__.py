from .config import Capabilities, ResourceConfig, Timestamps
from .controller import Operation, ResourceController, ResourceResult
from .router import build_router
from .shaping import FieldFilter, RecordShaper

__all__ = [
    "Capabilities",
    "FieldFilter",
    "Operation",
    "RecordShaper",
    "ResourceConfig",
    "ResourceController",
    "ResourceResult",
    "Timestamps",
    "build_router",
]
