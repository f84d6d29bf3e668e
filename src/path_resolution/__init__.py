"""Path conversion and dataset root detection helpers."""

from .converters import convert_to_absolute, convert_to_relative
from .root_detection import ROOT_MARKERS, detect_repo_root

__all__ = [
    'convert_to_absolute',
    'convert_to_relative',
    'detect_repo_root',
    'ROOT_MARKERS',
]
