"""
Test data for intake engine testing.

Provides tabular cases for name normalization and parsing, date tier
scoring, and the classification scenarios used across suites.
"""


# ============================================================================
# NAME NORMALIZATION
# ============================================================================

NORMALIZATION_TEST_CASES = [
    ("John Doe", "john doe"),
    ("  JOHN   DOE  ", "john doe"),
    ("John\tM.\nDoe", "john m doe"),
    ("Doe, John", "doe john"),
    ("O'Brien", "o'brien"),
    ("Smith-Jones", "smith-jones"),
    ("J.R. Smith", "j.r smith"),
    ("", ""),
]


# ============================================================================
# NAME PARSING: (full name, first, middle, last)
# ============================================================================

NAME_PARSING_TEST_CASES = [
    ("Smith", "", None, "Smith"),
    ("John Smith", "John", None, "Smith"),
    ("John M Smith", "John", "M", "Smith"),
    ("John Michael Robert Smith", "John", "Michael Robert", "Smith"),
    ("  John    Smith  ", "John", None, "Smith"),
    ("", "", None, ""),
]


# ============================================================================
# DATE TIERS: candidate collected 2025-01-15T10:00:00Z
# (extracted date, expected date points)
# ============================================================================

DATE_TIER_TEST_CASES = [
    ("2025-01-15T00:00:00Z", 40),
    ("2025-01-15T23:59:59Z", 40),
    ("2025-01-15", 40),
    ("2025-01-16T00:00:00Z", 30),
    ("2025-01-14T08:00:00Z", 30),
    ("2025-01-17", 20),
    ("2025-01-18T00:00:00.000Z", 20),
    ("2025-01-12", 20),
    ("2025-01-19", 10),
    ("2025-01-22", 10),
    ("2025-01-08", 10),
    ("2025-01-23", 0),
    ("2025-02-20", 0),
]

MALFORMED_DATES = [
    "not a date",
    "2025-13-45",
    "15/01/2025",
    "",
    "   ",
]


# ============================================================================
# CLASSIFICATION SCENARIOS
# (id, detected, medications as (name, codes, critical), outcome value, auto_accept)
# ============================================================================

CLASSIFICATION_SCENARIOS = [
    ("all-negative", [], [], "negative", True),
    ("expected-thc", ["thc"], [("Marinol", ["thc"], False)], "expected-positive", True),
    ("unexpected-cocaine", ["cocaine"], [], "unexpected-positive", False),
    ("critical-missing", [], [("Methadone", ["opiates"], True)], "unexpected-negative-critical", False),
    ("warning-missing", [], [("Adderall", ["amphetamines"], False)], "unexpected-negative-warning", True),
    (
        "mixed",
        ["thc"],
        [("Oxycodone", ["oxycodone"], False)],
        "mixed-unexpected",
        False,
    ),
    (
        "expected-plus-unexpected",
        ["oxycodone", "cocaine"],
        [("Oxycodone", ["oxycodone"], False)],
        "unexpected-positive",
        False,
    ),
    (
        "multi-code-medication",
        ["opiates", "oxycodone"],
        [("Percocet", ["opiates", "oxycodone"], True)],
        "expected-positive",
        True,
    ),
    (
        "partial-multi-code",
        ["opiates"],
        [("Percocet", ["opiates", "oxycodone"], True)],
        "unexpected-negative-critical",
        False,
    ),
]
