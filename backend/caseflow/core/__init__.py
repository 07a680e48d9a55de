from .config import settings
from .logger import logging

__all__ = ["settings", "logging"]
