"""
ABI (Application Binary Interface) definitions for the FlightSurety contracts.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List

LOGGER = logging.getLogger(__name__)

_ABI_DIR: Path = Path(__file__).resolve().parent


def _load_abi(filename: str) -> List[Dict[str, Any]]:
    """Load ABI from a JSON file (bare list or truffle/hardhat artifact)."""
    abi_file = _ABI_DIR / filename

    if not abi_file.is_file():
        raise FileNotFoundError(f"ABI file not found: {abi_file}")

    try:
        with open(abi_file, "r", encoding="utf-8") as fp:
            data = json.load(fp)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {abi_file}: {e}")

    if isinstance(data, list):
        return data

    # Build artifact: { "abi": [...] }
    if "abi" in data and isinstance(data["abi"], list):
        return data["abi"]

    raise ValueError(f"Unsupported ABI format in {abi_file}")


FlightSuretyAppABI: List[Dict[str, Any]] = _load_abi("FlightSuretyApp.json")
FlightSuretyDataABI: List[Dict[str, Any]] = _load_abi("FlightSuretyData.json")

__all__ = ["FlightSuretyAppABI", "FlightSuretyDataABI"]
