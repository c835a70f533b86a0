"""Per-site theme tokens: stored styles object -> CSS custom properties."""

import logging
import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote_plus

logger = logging.getLogger(__name__)

HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")

ALLOWED_FONTS = (
    "Inter",
    "Roboto",
    "Open Sans",
    "Lato",
    "Montserrat",
    "Playfair Display",
    "Poppins",
    "Raleway",
    "Merriweather",
    "Source Sans Pro",
)
DEFAULT_FONT = "Inter"
DEFAULT_RADIUS = "0.5rem"

DEFAULT_COLORS = {
    "primary": "0 0% 0%",
    "background": "0 0% 100%",
    "foreground": "0 0% 0%",
    "muted": "210 40% 96.1%",
    "mutedForeground": "215.4 16.3% 46.9%",
}

FOREGROUND_ON_LIGHT = "0 0% 0%"
FOREGROUND_ON_DARK = "0 0% 100%"


def _fmt(value: float) -> str:
    text = f"{round(value, 1):.1f}"
    return text[:-2] if text.endswith(".0") else text


def _hsl_components(color: Any) -> tuple[float, float, float] | None:
    if not isinstance(color, str):
        return None
    match = HEX_COLOR.match(color.strip())
    if not match:
        return None
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    r, g, b = (int(digits[i : i + 2], 16) / 255.0 for i in (0, 2, 4))

    hi, lo = max(r, g, b), min(r, g, b)
    lightness = (hi + lo) / 2
    if hi == lo:
        return 0.0, 0.0, lightness * 100

    delta = hi - lo
    saturation = delta / (2 - hi - lo) if lightness > 0.5 else delta / (hi + lo)
    if hi == r:
        hue = (g - b) / delta + (6 if g < b else 0)
    elif hi == g:
        hue = (b - r) / delta + 2
    else:
        hue = (r - g) / delta + 4
    return hue * 60, saturation * 100, lightness * 100


def hex_to_hsl(color: Any) -> str | None:
    """'#1e40af' -> '225.9 70.7% 40.2%'. None for anything that is not a 3/6 digit hex color."""
    components = _hsl_components(color)
    if components is None:
        return None
    hue, sat, light = components
    return f"{_fmt(hue)} {_fmt(sat)}% {_fmt(light)}%"


def normalize_font(font: Any) -> str:
    if isinstance(font, str):
        for allowed in ALLOWED_FONTS:
            if font.strip().lower() == allowed.lower():
                return allowed
    return DEFAULT_FONT


def normalize_radius(radius: Any) -> str:
    if isinstance(radius, bool):
        return DEFAULT_RADIUS
    if isinstance(radius, str):
        raw = radius.strip().removesuffix("rem").strip()
        try:
            value = float(raw)
        except ValueError:
            return DEFAULT_RADIUS
    elif isinstance(radius, (int, float)):
        value = float(radius)
    else:
        return DEFAULT_RADIUS
    if value < 0 or value > 4:
        return DEFAULT_RADIUS
    return f"{value:g}rem"


@dataclass(frozen=True)
class ThemeTokens:
    primary: str
    primary_foreground: str
    background: str
    foreground: str
    muted: str
    muted_foreground: str
    font_heading: str
    font_body: str
    radius: str

    def css_variables(self) -> dict[str, str]:
        return {
            "--primary": self.primary,
            "--primary-foreground": self.primary_foreground,
            "--background": self.background,
            "--foreground": self.foreground,
            "--muted": self.muted,
            "--muted-foreground": self.muted_foreground,
            "--radius": self.radius,
            "--font-heading": f"'{self.font_heading}', sans-serif",
            "--font-body": f"'{self.font_body}', sans-serif",
        }

    def to_css(self) -> str:
        lines = [":root {"]
        lines.extend(f"  {name}: {value};" for name, value in self.css_variables().items())
        lines.append("}")
        return "\n".join(lines)

    @property
    def fonts(self) -> tuple[str, ...]:
        if self.font_heading == self.font_body:
            return (self.font_heading,)
        return (self.font_heading, self.font_body)

    def font_stylesheet_url(self) -> str:
        families = "&".join(f"family={quote_plus(font)}:wght@400;600;700" for font in self.fonts)
        return f"https://fonts.googleapis.com/css2?{families}&display=swap"


def build_theme(styles: Any) -> ThemeTokens:
    """
    Derive theme tokens from a site's stored styles object.

    Unset or invalid values fall back to defaults; never raises.
    """
    if not isinstance(styles, dict):
        if styles is not None:
            logger.warning("Ignoring non-object site styles type=%s", type(styles).__name__)
        styles = {}

    colors: dict[str, str] = {}
    for key, default in DEFAULT_COLORS.items():
        raw = styles.get(key)
        converted = hex_to_hsl(raw)
        if raw is not None and converted is None:
            logger.warning("Invalid theme color key=%s value=%r; using default", key, raw)
        colors[key] = converted or default

    primary = _hsl_components(styles.get("primary"))
    primary_lightness = primary[2] if primary is not None else 0.0
    primary_foreground = FOREGROUND_ON_LIGHT if primary_lightness > 50 else FOREGROUND_ON_DARK

    return ThemeTokens(
        primary=colors["primary"],
        primary_foreground=primary_foreground,
        background=colors["background"],
        foreground=colors["foreground"],
        muted=colors["muted"],
        muted_foreground=colors["mutedForeground"],
        font_heading=normalize_font(styles.get("fontHeading")),
        font_body=normalize_font(styles.get("fontBody")),
        radius=normalize_radius(styles.get("radius")),
    )
