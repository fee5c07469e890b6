"""
Language and level helpers shared by the catalog and detail parsers.

- code -> human name lookup (plus humanizing of free-text cell labels)
- language codes from detail-page file names ("esfen.html" -> es / en)
- CEFR level detection and normalization
"""

from __future__ import annotations

import re
from typing import Optional, Tuple
from urllib.parse import urlparse


# ---------------------------------------------------------------------------
# Lookup tables
# ---------------------------------------------------------------------------

LANGUAGE_NAMES = {
    "af": "Afrikaans", "am": "Amharic", "ar": "Arabic", "az": "Azerbaijani",
    "be": "Belarusian", "bg": "Bulgarian", "bn": "Bengali", "bs": "Bosnian",
    "ca": "Catalan", "ceb": "Cebuano", "co": "Corsican", "cs": "Czech", "cy": "Welsh",
    "da": "Danish", "de": "German", "el": "Greek", "en": "English", "eo": "Esperanto",
    "es": "Spanish", "et": "Estonian", "eu": "Basque", "fa": "Persian", "fi": "Finnish",
    "fr": "French", "hv": "High Valyrian", "hw": "Hawaiian", "ga": "Irish",
    "gd": "Scottish Gaelic", "gl": "Galician", "gn": "Guarani", "gu": "Gujarati",
    "hk": "Cantonese", "ht": "Haitian Creole", "kl": "Klingon", "nb": "Norwegian Bokmål",
    "nv": "Navajo", "he": "Hebrew", "hi": "Hindi", "hr": "Croatian", "hu": "Hungarian",
    "hy": "Armenian", "id": "Indonesian", "ig": "Igbo", "is": "Icelandic", "it": "Italian",
    "ja": "Japanese", "ko": "Korean", "ku": "Kurdish", "la": "Latin", "lb": "Luxembourgish",
    "lt": "Lithuanian", "lv": "Latvian", "mg": "Malagasy", "mi": "Maori", "mk": "Macedonian",
    "ml": "Malayalam", "mn": "Mongolian", "mr": "Marathi", "ms": "Malay", "mt": "Maltese",
    "my": "Burmese", "ne": "Nepali", "nl": "Dutch", "no": "Norwegian", "ny": "Chichewa",
    "pl": "Polish", "pt": "Portuguese", "qu": "Quechua", "ro": "Romanian", "ru": "Russian",
    "sh": "Serbo-Croatian", "si": "Sinhala", "sk": "Slovak", "sr": "Serbian", "sv": "Swedish",
    "sw": "Swahili", "ta": "Tamil", "te": "Telugu", "th": "Thai", "tl": "Tagalog",
    "tr": "Turkish", "uk": "Ukrainian", "ur": "Urdu", "uz": "Uzbek", "vi": "Vietnamese",
    "yi": "Yiddish", "xh": "Xhosa", "zh": "Chinese", "zhhans": "Chinese (Simplified)",
    "zhhant": "Chinese (Traditional)", "zu": "Zulu",
}

# Prefixes stripped from level cells that carry no CEFR code
_LEVEL_PREFIXES = ["cefr", "nivel", "niveau", "livello", "nivå", "ระดับ"]


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

# "<target>f<source>" at the start of the detail file name, e.g. "esfen"
_CODES_FROM_FILENAME = re.compile(r"^([a-z]{2,5})f([a-z]{2,5})")

_CEFR_CODE = re.compile(r"([A-C][0-3](?:\+|-)?)", re.IGNORECASE)
_CEFR_LABEL = re.compile(r"CEFR\s*([A-C][0-3](?:\+|-)?)", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Language codes & names
# ---------------------------------------------------------------------------


def normalize_language_code(code: Optional[str]) -> Optional[str]:
    """
    Lowercase a code and drop everything that is not a letter.
    """
    if not code:
        return None
    cleaned = re.sub(r"[^a-z]", "", code.lower())
    return cleaned or None


def language_code_to_name(code: Optional[str]) -> Optional[str]:
    """
    Map a language code to its English name.

    Unknown 2/3-letter codes are capitalized as-is ("xx" -> "Xx"),
    anything else yields None.
    """
    normalized = normalize_language_code(code)
    if not normalized:
        return None
    if normalized in LANGUAGE_NAMES:
        return LANGUAGE_NAMES[normalized]
    if len(normalized) in (2, 3):
        return normalized.capitalize()
    return None


def humanize_language_label(raw: Optional[str]) -> str:
    """
    Turn a free-text catalog cell into a language name.

    "Spanish (Latin America)" -> "Spanish", "french for english speakers"
    -> "French", "es" -> "Spanish".
    """
    if not raw:
        return ""
    trimmed = re.sub(r"\([^)]*\)", " ", raw)
    trimmed = re.sub(r"for.+$", " ", trimmed, flags=re.IGNORECASE)
    trimmed = re.sub(r"from.+$", " ", trimmed, flags=re.IGNORECASE)
    trimmed = trimmed.strip()
    if not trimmed:
        return ""

    by_code = language_code_to_name(trimmed.lower())
    if by_code:
        return by_code

    words = [w for w in re.split(r"[\s/_-]+", trimmed) if w]
    return " ".join(w[:1].upper() + w[1:].lower() for w in words)


def extract_language_codes(detail_href: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Derive (to_code, from_code) from a detail URL's file name.

    Returns:
        ("es", "en") for ".../esfen.html", (None, None) when the name does not
        follow the "<target>f<source>" pattern.
    """
    if not detail_href:
        return None, None
    try:
        path = urlparse(detail_href).path
    except ValueError:
        return None, None

    file_name = path.rsplit("/", 1)[-1]
    base = re.sub(r"\.[^.]+$", "", file_name).lower()
    match = _CODES_FROM_FILENAME.match(base)
    if not match:
        return None, None
    return match.group(1), match.group(2)


# ---------------------------------------------------------------------------
# CEFR levels
# ---------------------------------------------------------------------------


def detect_cefr(text: Optional[str]) -> Optional[str]:
    """
    Return the CEFR code ("A1", "B2+", ...) contained in text, or None.
    """
    if not text:
        return None
    match = _CEFR_CODE.search(text)
    return match.group(1).upper() if match else None


def cefr_from_title(text: Optional[str]) -> Optional[str]:
    """
    Return the level of an explicit "CEFR <level>" label, or None.
    """
    if not text:
        return None
    match = _CEFR_LABEL.search(text)
    return match.group(1).upper() if match else None


def strip_cefr_label(text: str) -> str:
    """
    Remove every "CEFR <level>" label from text and tidy the spacing.
    """
    cleaned = _CEFR_LABEL.sub("", text)
    return re.sub(r"\s{2,}", " ", cleaned).strip()


def normalize_level(level: Optional[str]) -> str:
    """
    Normalize a catalog level cell.

    A CEFR code wins; otherwise localized "level" prefixes are stripped and
    the rest is upper-cased (e.g. "Niveau Intro" -> "INTRO").
    """
    if not level:
        return ""
    code = detect_cefr(level)
    if code:
        return code
    cleaned = level
    for prefix in _LEVEL_PREFIXES:
        cleaned = re.sub(rf"{prefix}\s*", "", cleaned, count=1, flags=re.IGNORECASE)
    return cleaned.strip().upper()
