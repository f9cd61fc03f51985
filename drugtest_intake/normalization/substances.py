"""
Substance vocabulary for drug test panels.

Defines the substance codes each panel screens for and the helpers used
to normalize codes coming from extracted reports and medication records.
Codes are opaque lowercase strings; comparisons are case-insensitive.
"""

from enum import Enum
from typing import FrozenSet, Iterable, Optional


# Sentinel stored on medications that do not show on any panel
NONE_CODE = 'none'


class TestType(Enum):
    """Drug test panel codes as stored on test records."""
    __test__ = False  # not a pytest class

    PANEL_15_INSTANT = '15-panel-instant'
    PANEL_11_LAB = '11-panel-lab'
    PANEL_17_SOS_LAB = '17-panel-sos-lab'
    ETG_LAB = 'etg-lab'


SUBSTANCE_LABELS = {
    '6-mam': '6-MAM (Heroin)',
    'alcohol': 'Alcohol (Ethanol - Current)',
    'amphetamines': 'Amphetamines',
    'barbiturates': 'Barbiturates',
    'benzodiazepines': 'Benzodiazepines',
    'buprenorphine': 'Buprenorphine',
    'cocaine': 'Cocaine',
    'etg': 'EtG (Alcohol - Past 24-48hrs)',
    'fentanyl': 'Fentanyl',
    'kratom': 'Kratom',
    'mdma': 'MDMA (Ecstasy)',
    'methadone': 'Methadone',
    'methamphetamines': 'Methamphetamine',
    'opiates': 'Opiates',
    'oxycodone': 'Oxycodone',
    'pcp': 'PCP',
    'propoxyphene': 'Propoxyphene',
    'synthetic_cannabinoids': 'Synthetic Cannabinoids',
    'thc': 'THC (Marijuana)',
    'tramadol': 'Tramadol',
    'tricyclic_antidepressants': 'Tricyclic Antidepressants',
}

ALL_SUBSTANCES: FrozenSet[str] = frozenset(SUBSTANCE_LABELS)

PANEL_SUBSTANCES = {
    TestType.PANEL_15_INSTANT: frozenset({
        '6-mam', 'amphetamines', 'benzodiazepines', 'buprenorphine',
        'cocaine', 'etg', 'fentanyl', 'mdma', 'methadone',
        'methamphetamines', 'opiates', 'oxycodone',
        'synthetic_cannabinoids', 'thc', 'tramadol',
    }),
    # AMP, BUP, BZO, COC, ETG, FEN, MIT, MTD, OPI, THC
    TestType.PANEL_11_LAB: frozenset({
        'amphetamines', 'benzodiazepines', 'buprenorphine', 'cocaine',
        'etg', 'fentanyl', 'kratom', 'methadone', 'opiates', 'thc',
    }),
    # Screens ethanol (current intoxication), not EtG
    TestType.PANEL_17_SOS_LAB: frozenset({
        'alcohol', 'amphetamines', 'barbiturates', 'benzodiazepines',
        'buprenorphine', 'cocaine', 'mdma', 'methadone', 'opiates',
        'oxycodone', 'pcp', 'propoxyphene', 'thc',
        'tricyclic_antidepressants',
    }),
    TestType.ETG_LAB: frozenset({'etg'}),
}


def parse_test_type(value) -> Optional[TestType]:
    """
    Resolve a test type code to a TestType.

    Args:
        value: TestType, code string, or None

    Returns:
        TestType, or None for missing / unrecognized codes
    """
    if value is None or isinstance(value, TestType):
        return value
    try:
        return TestType(str(value).strip().lower())
    except ValueError:
        return None


def get_panel_substances(test_type=None) -> FrozenSet[str]:
    """
    Get the substance codes a panel screens for.

    Unknown or missing test types return every known substance, so
    scoping by panel never hides a code the caller did not ask to hide.
    """
    resolved = parse_test_type(test_type)
    if resolved is None:
        return ALL_SUBSTANCES
    return PANEL_SUBSTANCES[resolved]


def normalize_substance_code(code) -> str:
    """Case-fold and trim a substance code. Non-strings become ''."""
    if not isinstance(code, str):
        return ''
    return code.strip().casefold()


def normalize_substance_set(codes: Optional[Iterable], none_code: str = NONE_CODE) -> FrozenSet[str]:
    """
    Normalize a collection of substance codes into a set.

    Blank entries and the "does not show" sentinel are dropped.

    Args:
        codes: Iterable of codes (None is treated as empty)
        none_code: Sentinel code to drop

    Returns:
        Frozen set of normalized codes
    """
    if not codes:
        return frozenset()
    if isinstance(codes, str):
        codes = [codes]
    normalized = (normalize_substance_code(c) for c in codes)
    return frozenset(c for c in normalized if c and c != none_code)


def substance_label(code: str) -> str:
    """Display label for a substance code, falling back to the code itself."""
    return SUBSTANCE_LABELS.get(normalize_substance_code(code), code)
