"""Real-time live session gateway for generative models."""

from pathlib import Path

PACKAGE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = PACKAGE_DIR.parent

__version__ = "0.1.0"

__all__ = ["PACKAGE_DIR", "PROJECT_ROOT", "__version__"]
