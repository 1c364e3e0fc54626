"""
PDF inspection utilities.

Helper functions:
    page_count: Quick page count without full extraction.
    page_sizes: Media box dimensions (points) of every page.
    inches_to_points: Convert physical inches to PDF points.
"""

from pathlib import Path
from typing import List, Optional, Tuple

from PyPDF2 import PdfReader

POINTS_PER_INCH = 72.0


def inches_to_points(inches: float) -> float:
    return inches * POINTS_PER_INCH


def page_count(pdf_path: Path) -> Optional[int]:
    """Get page count from PDF, or None if unreadable."""
    try:
        reader = PdfReader(str(pdf_path))
        return len(reader.pages)
    except Exception:
        return None


def page_sizes(pdf_path: Path) -> List[Tuple[float, float]]:
    """
    Get (width, height) in points for each page, honoring page rotation.

    Args:
        pdf_path: Path to PDF file

    Returns:
        One (width, height) tuple per page, in page order
    """
    reader = PdfReader(str(pdf_path))
    sizes = []
    for page in reader.pages:
        width = float(page.mediabox.width)
        height = float(page.mediabox.height)
        # Rotated pages render with swapped dimensions
        if (page.get("/Rotate") or 0) % 180 == 90:
            width, height = height, width
        sizes.append((width, height))
    return sizes
