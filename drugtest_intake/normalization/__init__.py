"""
Normalization package for donor names and substance codes.

Provides the text normalization applied before name similarity scoring,
full-name parsing, and the panel substance vocabulary.
"""

from .text_normalizer import TextNormalizer, normalize_text
from .name_parser import Name, parse_name
from .substances import (
    NONE_CODE,
    TestType,
    get_panel_substances,
    normalize_substance_code,
    normalize_substance_set,
    parse_test_type,
    substance_label,
)

__all__ = [
    'TextNormalizer',
    'normalize_text',
    'Name',
    'parse_name',
    'NONE_CODE',
    'TestType',
    'get_panel_substances',
    'normalize_substance_code',
    'normalize_substance_set',
    'parse_test_type',
    'substance_label',
]
