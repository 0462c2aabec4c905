from .app import build_parser
from .app import main

__all__ = ["main", "build_parser"]
