# backend/directory_search/services/search/patterns.py
"""
Regex patterns for keyword query interpretation.

Filter patterns run against the lower-cased raw text so punctuation such as
"24/7" and "4+ stars" survives. Location patterns run against normalized text.
"""
import re
from typing import List, Pattern, Tuple

# =============================================================================
# LOCATION PATTERNS
# =============================================================================

ZIP_CODE: Pattern[str] = re.compile(r"\b(\d{5})\b")
ZIP_EXACT: Pattern[str] = re.compile(r"^\d{5}$")

NEAR_ME: Pattern[str] = re.compile(
    r"\b(?:near\s+me|close\s+to\s+me|nearby|near\s+by|local|in\s+my\s+area|around\s+here)\b",
    re.IGNORECASE,
)

# =============================================================================
# FILTER PATTERNS
# =============================================================================

VERIFIED: Pattern[str] = re.compile(r"\b(?:verified|certified\s+listing|trusted)\b", re.IGNORECASE)
OPEN_NOW: Pattern[str] = re.compile(r"\b(?:open\s+now|currently\s+open|open\s+today)\b", re.IGNORECASE)

AVAILABILITY_24_7: Pattern[str] = re.compile(
    r"(?:24/7|24-7|\b24\s*hours?\b|\b24\s*hrs?\b|\ball\s+day\b|\ball\s+night\b|\bovernight\b)",
    re.IGNORECASE,
)
AVAILABILITY_EMERGENCY: Pattern[str] = re.compile(
    r"\b(?:emergency|urgent|immediate|asap|right\s+now)\b", re.IGNORECASE
)

MOBILE: Pattern[str] = re.compile(
    r"\b(?:mobile|house\s*-?\s*calls?|come\s+to\s+me|at\s+home|in\s+home|traveling)\b",
    re.IGNORECASE,
)

QUALITY_PREMIUM: Pattern[str] = re.compile(
    r"\b(?:premium|luxury|high\s*-?\s*end|best|top\s*-?\s*rated|excellent)\b", re.IGNORECASE
)
QUALITY_BUDGET: Pattern[str] = re.compile(
    r"\b(?:cheap|budget|affordable|inexpensive|low\s*-?\s*cost|economical)\b", re.IGNORECASE
)

ORGANIC: Pattern[str] = re.compile(
    r"\b(?:organic|natural|holistic|homeopathic|chemical\s*-?\s*free)\b", re.IGNORECASE
)
SENIOR: Pattern[str] = re.compile(r"\b(?:senior|elderly|aging|geriatric)\b", re.IGNORECASE)
PUPPY: Pattern[str] = re.compile(r"\b(?:pupp(?:y|ies)|newborn|young\s+dogs?)\b", re.IGNORECASE)

SIZE_LARGE: Pattern[str] = re.compile(r"\b(?:large|big|giant|huge)\b", re.IGNORECASE)
SIZE_MEDIUM: Pattern[str] = re.compile(r"\b(?:medium|mid\s*-?\s*sized?)\b", re.IGNORECASE)
SIZE_SMALL: Pattern[str] = re.compile(r"\b(?:small|tiny|mini|miniature|toy\s+breeds?)\b", re.IGNORECASE)

MIN_RATING: Pattern[str] = re.compile(r"\b([1-5])\s*\+?\s*(?:stars?|rating|rated)\b", re.IGNORECASE)

# =============================================================================
# DESCRIPTIVE MODIFIERS
# =============================================================================

MODIFIER_PATTERNS: List[Tuple[str, Pattern[str]]] = [
    ("quality", re.compile(r"\b(?:best|top|excellent|amazing|outstanding|superior)\b", re.IGNORECASE)),
    ("price", re.compile(r"\b(?:cheap|affordable|budget|inexpensive|reasonable)\b", re.IGNORECASE)),
    ("speed", re.compile(r"\b(?:fast|quick|rapid|swift|immediate)\b", re.IGNORECASE)),
    ("temperament", re.compile(r"\b(?:friendly|kind|caring|gentle|patient)\b", re.IGNORECASE)),
    (
        "credentials",
        re.compile(r"\b(?:experienced|professional|certified|licensed|qualified)\b", re.IGNORECASE),
    ),
    ("convenience", re.compile(r"\b(?:convenient|accessible|easy|simple)\b", re.IGNORECASE)),
]
