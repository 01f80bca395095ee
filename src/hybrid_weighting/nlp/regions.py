"""Regional surface forms for geographic query detection.

Maps a region code to the ways a query can refer to that region: the
ISO 3166 code, the English name and common name from ``pycountry``, plus
aliases that cannot be derived from the official data (native names,
demonyms, short names).

Example:
    - "UK sales training" -> "UK"
    - "dutch tax rules" -> "NL"
    - "swiss banking" -> "CH"
    - "Luxembourg payroll" -> "LU"

The United Kingdom is keyed "UK"; "GB" stays a surface form. Two-letter
all-caps forms only match when written in upper case, so "us" or "it" in
running text never trigger a region.

Dictionary order is the detection order: the first region with a matching
form wins. Regions with longer names come first so "South Sudan" is not
claimed by "Sudan"; ties go by region code.
"""
# ruff: noqa: RUF001  # Native names intentionally contain non-ASCII letters

from __future__ import annotations

from collections.abc import Iterable, Mapping
import re

import pycountry


# ISO names written "Korea, Republic of" never appear that way in queries
_INVERTED_NAME = re.compile(r"[,(]")
_WORD = re.compile(r"\w+")

REGION_ALIASES: dict[str, tuple[str, ...]] = {
    "AE": ("UAE", "Emirates"),
    "AT": ("Österreich",),
    "BE": ("België", "Belgique"),
    "BO": ("Bolivia",),
    "BR": ("Brasil",),
    "CH": ("Schweiz", "Suisse", "Swiss"),
    "CN": ("Zhongguo",),
    "CZ": ("Czech Republic", "Česko"),
    "DE": ("Deutschland",),
    "DK": ("Danmark",),
    "ES": ("España",),
    "FI": ("Suomi",),
    "HU": ("Magyarország",),
    "IE": ("Éire",),
    "IN": ("Bharat",),
    "IR": ("Iran",),
    "IT": ("Italia",),
    "JP": ("Nippon",),
    "KP": ("North Korea",),
    "KR": ("South Korea", "Korea"),
    "MX": ("México",),
    "NL": ("Nederland", "Dutch", "Holland"),
    "NO": ("Norge",),
    "PE": ("Perú",),
    "PH": ("Pilipinas",),
    "PL": ("Polska",),
    "RO": ("România",),
    "RU": ("Russia", "Rossiya"),
    "SE": ("Sverige",),
    "SY": ("Syria",),
    "TR": ("Turkey", "Türkiye"),
    "TW": ("Taiwan",),
    "TZ": ("Tanzania",),
    "UA": ("Ukraina",),
    "UK": ("Britain", "British", "England", "English"),
    "US": ("USA", "America", "American"),
    "VE": ("Venezuela",),
    "VN": ("Vietnam",),
}


def _region_code(alpha_2: str) -> str:
    return "UK" if alpha_2 == "GB" else alpha_2


def _longest_form(forms: Iterable[str]) -> int:
    return max(len(_WORD.findall(form)) for form in forms)


def build_region_patterns(aliases: Mapping[str, Iterable[str]] = REGION_ALIASES) -> dict[str, tuple[str, ...]]:
    """Build surface forms for every ISO 3166 country, merged with ``aliases``.

    Alias codes with no ISO country become regions of their own.
    """
    collected: dict[str, list[str]] = {}
    for country in pycountry.countries:
        code = _region_code(country.alpha_2)
        forms = collected.setdefault(code, [code, country.alpha_2])
        for attribute in ("name", "common_name"):
            name = getattr(country, attribute, None)
            if name and not _INVERTED_NAME.search(name):
                forms.append(name)

    for code, extra in aliases.items():
        collected.setdefault(code, [code]).extend(extra)

    ordered = sorted(collected.items(), key=lambda item: (-_longest_form(item[1]), item[0]))
    return {code: tuple(dict.fromkeys(forms)) for code, forms in ordered}


DEFAULT_REGION_PATTERNS: dict[str, tuple[str, ...]] = build_region_patterns()


def extend_region_patterns(
    patterns: Mapping[str, Iterable[str]],
    region_code: str,
    extra: Iterable[str],
) -> dict[str, tuple[str, ...]]:
    """Return a new mapping with ``extra`` forms appended to ``region_code``.

    Unknown region codes are appended at the end of the detection order.
    Duplicate forms are dropped while keeping first-seen order.
    """

    merged = {code: tuple(forms) for code, forms in patterns.items()}
    existing = merged.get(region_code, ())
    combined = tuple(dict.fromkeys((*existing, *(form for form in extra if form))))
    merged[region_code] = combined
    return merged
