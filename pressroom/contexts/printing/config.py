"""
Paper Preset Resolution for Chrome Printing

Applies named configuration presets to ChromeOptions. Presets are composable
and can override each other, allowing flexible combination of paper size,
margins and orientation.

Examples:
    # A4 landscape with narrow margins
    >>> options = apply_presets(ChromeOptions(), ["paper_a4", "margins_narrow", "orientation_landscape"])

    # Later presets override earlier ones
    >>> options = apply_presets(options, ["paper_letter"])
"""

import dataclasses
import os
from pathlib import Path
from typing import Any, Dict, List

from dotenv import load_dotenv
from omegaconf import OmegaConf

from pressroom.contexts.printing.chrome import ChromeOptions

load_dotenv()
PAPER_PRESETS_PATH = Path(
    os.getenv("PAPER_PRESETS_PATH", Path(__file__).parent / "paper_presets.yaml")
)

OPTION_FIELDS = {field.name for field in dataclasses.fields(ChromeOptions)}


def load_paper_presets(config_path: Path = None) -> Dict[str, Dict[str, Any]]:
    """
    Load paper_presets.yaml and flatten to single-level dict.

    Collapses nested structure: paper.a4 -> paper_a4

    Args:
        config_path: Optional path to config file (defaults to PAPER_PRESETS_PATH)

    Returns:
        Flattened dict mapping preset names to option overrides
        Example: {"paper_a4": {"paper_width": 8.27, "paper_height": 11.69}, ...}
    """
    if config_path is None:
        config_path = PAPER_PRESETS_PATH

    nested = OmegaConf.to_container(OmegaConf.load(config_path), resolve=True)

    flattened = {}
    for category, presets in nested.items():
        for name, config in presets.items():
            flattened[f"{category}_{name}"] = config

    return flattened


def apply_presets(
    options: ChromeOptions,
    preset_names: List[str],
    config_path: Path = None,
) -> ChromeOptions:
    """
    Apply named presets to Chrome options.

    Args:
        options: Base options (left unchanged)
        preset_names: Preset names in application order (e.g., ["paper_letter", "margins_none"])
        config_path: Optional path to a presets file (defaults to PAPER_PRESETS_PATH)

    Returns:
        New ChromeOptions with presets applied

    Raises:
        ValueError: If a preset is not found or sets an unknown option
    """
    presets_dict = load_paper_presets(config_path)

    overrides: Dict[str, Any] = {}
    for preset_name in preset_names:
        if preset_name not in presets_dict:
            available = sorted(presets_dict.keys())
            raise ValueError(f"Preset '{preset_name}' not found. Available presets: {available}")

        preset_config = presets_dict[preset_name]
        unknown = set(preset_config) - OPTION_FIELDS
        if unknown:
            raise ValueError(f"Preset '{preset_name}' sets unknown options: {sorted(unknown)}")

        overrides.update(preset_config)

    return dataclasses.replace(options, **overrides)
