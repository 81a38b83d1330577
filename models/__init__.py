from .building import Building, Door
from .classification import Classification

__all__ = ["Building", "Door", "Classification"]
