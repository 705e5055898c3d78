from .models import SpiderHandle
from .registry import SpiderRegistry

__all__ = ["SpiderHandle", "SpiderRegistry"]
