#!/usr/bin/env python3
"""
Font resolution, measurement helpers and typeface size compensation

A font is requested with a CSS-like family list ("Inter, system-ui, sans-serif"),
a numeric weight and a pixel size. Families are looked up in the configured font
directories and the platform font directories; when nothing matches, Pillow's
built-in scalable font is used so rendering never fails for lack of a font.
"""

import logging
import os
import re
import sys
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import requests
from PIL import ImageFont

from .. import config

logger = logging.getLogger(__name__)

# Selectable families offered to users; all are available from Google Fonts
GOOGLE_FONTS = [
    "Inter",
    "Roboto",
    "Open Sans",
    "Lato",
    "Montserrat",
    "Poppins",
    "Source Sans 3",
    "Nunito",
    "Merriweather",
    "Playfair Display",
]

DEFAULT_FONT_FAMILY = "Inter, system-ui, Arial, sans-serif"

# Typeface compensation
CALIBRATION_TEXT = "AaGgHhMm0123456789"
BASELINE_FAMILY = "Inter, system-ui, Arial, sans-serif"
CALIBRATION_WEIGHT = 600
CALIBRATION_SIZE = 32
COMPENSATION_MIN = 0.85
COMPENSATION_MAX = 1.2

GENERIC_FAMILIES = {
    "sans-serif": ["DejaVu Sans", "Liberation Sans", "Arial", "Helvetica", "Noto Sans"],
    "system-ui": ["DejaVu Sans", "Liberation Sans", "Segoe UI", "Helvetica", "Noto Sans"],
    "serif": ["DejaVu Serif", "Liberation Serif", "Times New Roman", "Georgia", "Noto Serif"],
    "monospace": ["DejaVu Sans Mono", "Liberation Mono", "Courier New", "Menlo"],
}

FONT_EXTENSIONS = (".ttf", ".otf", ".ttc")


def _platform_font_dirs() -> List[Path]:
    home = Path.home()
    if sys.platform == "darwin":
        return [Path("/System/Library/Fonts"), Path("/Library/Fonts"), home / "Library" / "Fonts"]
    if sys.platform.startswith("win"):
        return [Path(os.environ.get("WINDIR", "C:\\Windows")) / "Fonts"]
    return [
        Path("/usr/share/fonts"),
        Path("/usr/local/share/fonts"),
        home / ".fonts",
        home / ".local" / "share" / "fonts",
    ]


@dataclass(frozen=True)
class FontSpec:
    """A font request: CSS-like family list, numeric weight and pixel size."""

    family: str
    weight: int = 400
    size: int = 32


def split_families(family: str) -> List[str]:
    """Split a CSS font-family list into bare family names ("'Open Sans', serif" -> ["Open Sans", "serif"])."""
    names = []
    for part in (family or "").split(","):
        name = part.strip().strip("'\"").strip()
        if name:
            names.append(name)
    return names


def _normalize(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "", name.lower())


def _split_stem(stem: str) -> Tuple[str, str]:
    """Split a font file stem into (family key, style), e.g. "OpenSans-SemiBold" -> ("opensans", "semibold")."""
    base = stem.split("[", 1)[0]
    if "-" in base:
        family, style = base.split("-", 1)
    else:
        family, style = base, ""
    if "[" in stem:
        style = (style + " variable").strip()
    return _normalize(family), _normalize(style)


def _style_rank(style: str, weight: int) -> int:
    """Lower is better. Italic styles are always a last resort."""
    penalty = 100 if ("italic" in style or "oblique" in style) else 0
    if "variable" in style or "wght" in style:
        return penalty
    if weight >= 600:
        order = ["bold", "semibold", "demibold", "extrabold", "black", "medium"]
        if weight < 700:
            order = ["semibold", "demibold", "bold", "medium", "extrabold"]
    elif weight >= 500:
        order = ["medium", "regular", "", "book", "semibold"]
    else:
        order = ["regular", "", "book", "normal", "roman", "medium"]
    if style in order:
        return penalty + 1 + order.index(style)
    # "condensedbold", "boldoblique" and the like
    if weight >= 600 and "bold" in style and "semi" not in style:
        return penalty + 20
    return penalty + 50


class GoogleFontCache:
    """Disk cache of TTF files downloaded from the Google Fonts CSS API"""

    CSS_URL = "https://fonts.googleapis.com/css2"
    TTF_URL_RE = re.compile(r"url\((https://fonts\.gstatic\.com/[^)]+\.ttf)\)")
    TIMEOUT_SECONDS = 10

    def __init__(self, cache_dir=None):
        """
        Initialize font cache

        Args:
            cache_dir: Directory to store downloaded fonts (default: configured font cache)
        """
        self.cache_dir = Path(cache_dir or config.FONT_CACHE_DIR)
        self._lock = threading.Lock()

    def _get_cache_path(self, family: str, weight: int) -> Path:
        return self.cache_dir / f"{family.replace(' ', '')}-w{weight}.ttf"

    def get(self, family: str, weight: int = 400) -> Optional[Path]:
        """
        Return a local TTF path for a family/weight, downloading it if needed

        Args:
            family: Family name as listed by Google Fonts (e.g. "Open Sans")
            weight: Numeric weight (400, 500, 600, 700, ...)

        Returns:
            Path to the cached file, or None if the font could not be fetched
        """
        cache_path = self._get_cache_path(family, weight)
        if cache_path.exists():
            return cache_path

        with self._lock:
            if cache_path.exists():
                return cache_path
            try:
                css = requests.get(
                    self.CSS_URL,
                    params={"family": f"{family}:wght@{weight}"},
                    timeout=self.TIMEOUT_SECONDS,
                )
                css.raise_for_status()
                match = self.TTF_URL_RE.search(css.text)
                if not match:
                    logger.warning(f"No TTF source for '{family}' ({weight}) in Google Fonts response")
                    return None
                font = requests.get(match.group(1), timeout=self.TIMEOUT_SECONDS)
                font.raise_for_status()
            except requests.RequestException as e:
                logger.warning(f"Could not download font '{family}' ({weight}): {e}")
                return None

            self.cache_dir.mkdir(parents=True, exist_ok=True)
            cache_path.write_bytes(font.content)
            logger.info(f"Downloaded font '{family}' ({weight}) to {cache_path}")
            return cache_path


class FontResolver:
    """Resolve FontSpec requests to loaded Pillow fonts"""

    def __init__(self, font_dirs: Optional[Iterable[Path]] = None,
                 downloader: Optional[GoogleFontCache] = None,
                 include_system_fonts: bool = True):
        dirs = [Path(d) for d in (font_dirs if font_dirs is not None else config.FONT_DIRS)]
        if include_system_fonts:
            dirs.extend(_platform_font_dirs())
        self.font_dirs = dirs
        self.downloader = downloader
        self._index: Optional[Dict[str, List[Tuple[str, Path]]]] = None
        self._fonts: Dict[Tuple[str, int, int], ImageFont.FreeTypeFont] = {}
        self._warned: set = set()
        self._lock = threading.Lock()

    def _build_index(self) -> Dict[str, List[Tuple[str, Path]]]:
        index: Dict[str, List[Tuple[str, Path]]] = {}
        for font_dir in self.font_dirs:
            if not font_dir.is_dir():
                continue
            for path in sorted(font_dir.rglob("*")):
                if path.suffix.lower() not in FONT_EXTENSIONS:
                    continue
                family, style = _split_stem(path.stem)
                index.setdefault(family, []).append((style, path))
        logger.debug(f"Indexed {sum(len(v) for v in index.values())} font files in {len(index)} families")
        return index

    @property
    def index(self) -> Dict[str, List[Tuple[str, Path]]]:
        if self._index is None:
            with self._lock:
                if self._index is None:
                    self._index = self._build_index()
        return self._index

    def find_file(self, family: str, weight: int = 400) -> Optional[Path]:
        """Best matching font file for a single family name, or None."""
        candidates = self.index.get(_normalize(family))
        if candidates:
            style, path = min(candidates, key=lambda c: (_style_rank(c[0], weight), str(c[1])))
            return path
        if self.downloader is not None and family in GOOGLE_FONTS:
            return self.downloader.get(family, weight)
        return None

    def resolve(self, spec: FontSpec) -> Tuple[Optional[Path], str]:
        """Return (font file, family name that matched) for the first resolvable family in the list."""
        for name in split_families(spec.family):
            for candidate in GENERIC_FAMILIES.get(name.lower(), [name]):
                path = self.find_file(candidate, spec.weight)
                if path is not None:
                    return path, candidate
        return None, ""

    def get_font(self, spec: FontSpec) -> ImageFont.FreeTypeFont:
        """
        Load the Pillow font for a FontSpec

        Args:
            spec: Requested family list, weight and size

        Returns:
            A FreeTypeFont (Pillow's built-in scalable default when nothing matches)
        """
        size = max(1, int(spec.size))
        path, _ = self.resolve(spec)
        key = (str(path) if path else "", int(spec.weight), size)
        font = self._fonts.get(key)
        if font is not None:
            return font

        if path is None:
            if spec.family not in self._warned:
                self._warned.add(spec.family)
                logger.warning(f"No font file found for '{spec.family}', using Pillow default font")
            font = ImageFont.load_default(size=size)
        else:
            try:
                font = ImageFont.truetype(str(path), size)
            except OSError as e:
                logger.warning(f"Could not load font {path}: {e}")
                font = ImageFont.load_default(size=size)
            else:
                _apply_weight_axis(font, spec.weight)
        self._fonts[key] = font
        return font

    def measure(self, text: str, spec: FontSpec) -> float:
        """Advance width of a single line of text in pixels."""
        return float(self.get_font(spec).getlength(text))


def _apply_weight_axis(font: ImageFont.FreeTypeFont, weight: int) -> None:
    """Set the weight axis of a variable font; static fonts are left untouched."""
    try:
        axes = font.get_variation_axes()
    except OSError:
        return
    values = []
    for axis in axes:
        name = axis.get("name")
        if isinstance(name, bytes):
            name = name.decode("ascii", errors="ignore")
        if str(name).lower() == "weight":
            values.append(max(axis["minimum"], min(axis["maximum"], weight)))
        else:
            values.append(axis["default"])
    try:
        font.set_variation_by_axes(values)
    except OSError as e:
        logger.debug(f"Could not set variation axes: {e}")


_default_resolver: Optional[FontResolver] = None
_default_lock = threading.Lock()


def get_font_resolver() -> FontResolver:
    """Get or create the global font resolver instance"""
    global _default_resolver
    with _default_lock:
        if _default_resolver is None:
            downloader = GoogleFontCache() if config.FONT_DOWNLOAD else None
            _default_resolver = FontResolver(downloader=downloader)
    return _default_resolver


def compensate(font_family: str, measure: Callable[[str, FontSpec], float]) -> float:
    """
    Size correction that makes a typeface look as large as the baseline font

    Measures CALIBRATION_TEXT at a fixed weight and size in the baseline family and
    in the target family; a visually narrower target gets a factor above 1.

    Args:
        font_family: Target CSS-like family list
        measure: Callable returning the pixel width of text in a FontSpec

    Returns:
        Factor clamped to [0.85, 1.2]
    """
    baseline = max(1.0, measure(CALIBRATION_TEXT, FontSpec(BASELINE_FAMILY, CALIBRATION_WEIGHT, CALIBRATION_SIZE)))
    target = max(1.0, measure(CALIBRATION_TEXT, FontSpec(font_family, CALIBRATION_WEIGHT, CALIBRATION_SIZE)))
    ratio = baseline / target
    factor = max(COMPENSATION_MIN, min(COMPENSATION_MAX, ratio))
    logger.debug(f"Font compensation for '{font_family}': {factor:.3f} (raw {ratio:.3f})")
    return factor
