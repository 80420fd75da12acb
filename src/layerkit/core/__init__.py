"""layerkit core library.

Entry resolution, module graph analysis, layer installation, and template
transformation, plus the layer manager that wires them to host lifecycle
events.
"""

from . import exceptions  # noqa: F401
from .manager import LayerManager
from .service import Service, load_service

__all__ = ["exceptions", "LayerManager", "Service", "load_service"]
