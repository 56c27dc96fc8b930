"""Silence-cut editor — hands the composed timeline to the export sink."""

from pathlib import Path

from quietcut import ffutil
from quietcut.models import Composition


def apply_splices(
    input_path: Path,
    composition: Composition,
    output_path: Path,
) -> Path:
    """Render every splice of ``composition`` into ``output_path``."""
    if not composition.splices:
        raise ValueError("No splices to render — entire video would be removed")

    ffutil.render_splices(input_path, composition.splices, output_path)
    return output_path
