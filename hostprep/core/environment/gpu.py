"""
GPU and CUDA classification — pure functions, no I/O.

These are best-effort heuristics over display names reported by
Windows and nvidia-smi. They match substrings and loose patterns on
purpose; vendors do not guarantee a stable naming format.
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

# Professional and data-center cards: always accepted.
DATACENTER_ALLOWLIST: tuple[str, ...] = (
    "TESLA", "QUADRO RTX", "RTX A", "A100", "H100",
    "A40", "A30", "A10", "V100", "P100",
)

_RTX_PATTERN = re.compile(r"RTX\s*(\d+)(\d{2,3})(?:\s*(TI|SUPER))?", re.IGNORECASE)
_BLACKWELL_DATACENTER = ("B100", "B200", "GB200", "B300")

SUPPORTED_CUDA_SERIES: tuple[tuple[int, int], ...] = ((12, 8), (12, 9))


def parse_rtx_model(gpu_name: str) -> tuple[int, int, str] | None:
    """Split an RTX name into (series, model, suffix).

    ``"NVIDIA GeForce RTX 3060 Ti"`` → ``(30, 60, "TI")``.
    """
    match = _RTX_PATTERN.search(gpu_name.upper())
    if not match:
        return None
    return int(match.group(1)), int(match.group(2)), match.group(3) or ""


def meets_minimum_requirement(gpu_name: str) -> bool:
    """Whether an NVIDIA GPU is strong enough for the inference runtime.

    First match wins:
        1. data-center / professional allowlist → accept
        2. GeForce / RTX: 50+ accept; 40 needs model >= 60;
           30 needs model > 60, or 60 Ti; 20 and older reject
        3. GTX → reject
        4. anything else → reject
    """
    gpu_upper = gpu_name.upper()

    for card in DATACENTER_ALLOWLIST:
        if card in gpu_upper:
            logger.info("[ENV] GPU identified as professional card: %s", card)
            return True

    if "GEFORCE" in gpu_upper or "RTX" in gpu_upper:
        parsed = parse_rtx_model(gpu_upper)
        if parsed is not None:
            series, model, suffix = parsed
            logger.info(
                "[ENV] GPU parsed - Series: %d, Model: %d, Suffix: %s",
                series, model, suffix or "-",
            )
            if series >= 50:
                return True
            if series == 40:
                return model >= 60
            if series == 30:
                if model > 60:
                    return True
                if model == 60:
                    return "TI" in suffix
                return False
            if series <= 20:
                return False

    # GTX cards used to be accepted from the 1650 up for testing; every
    # GTX model is rejected now.
    if "GTX" in gpu_upper:
        logger.info("[ENV] GPU is GTX series, rejecting")
        return False

    logger.info("[ENV] GPU type unrecognized, rejecting")
    return False


def is_blackwell_series(gpu_name: str) -> bool:
    """Blackwell cards get a different runtime image."""
    gpu_upper = gpu_name.upper()
    if "BLACKWELL" in gpu_upper:
        return True
    if any(chip in gpu_upper for chip in _BLACKWELL_DATACENTER):
        return True
    parsed = parse_rtx_model(gpu_upper)
    return parsed is not None and parsed[0] == 50


def select_nvidia_gpu(names: list[str]) -> str | None:
    """Pick the first NVIDIA adapter from a list of display names."""
    markers = ("NVIDIA", "GEFORCE", "QUADRO", "TESLA")
    for name in names:
        cleaned = name.strip()
        if cleaned and any(m in cleaned.upper() for m in markers):
            return cleaned
    return None


def parse_cuda_version(text: str) -> str | None:
    """Extract a CUDA toolkit version from ``nvcc --version`` output."""
    match = re.search(r"release\s+(\d+\.\d+)", text)
    if match:
        return match.group(1)
    match = re.search(r"\bV(\d+\.\d+)(?:\.\d+)?", text)
    if match:
        return match.group(1)
    return None


def is_supported_cuda_version(version: str) -> bool:
    """Accept 12.8.x and 12.9.x only."""
    match = re.match(r"(\d+)\.(\d+)", version.strip())
    if not match:
        return False
    return (int(match.group(1)), int(match.group(2))) in SUPPORTED_CUDA_SERIES
