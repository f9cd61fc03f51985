"""
Text normalization module for donor and client names.

Provides the preprocessing applied to every name token before similarity
scoring, so that case, Unicode form, stray punctuation and whitespace
variants seen in extracted PDF text do not affect matching.
"""

import re
import unicodedata


class TextNormalizer:
    """
    Normalizes name text to a standard form for matching.

    Handles:
    - Unicode normalization (NFKC)
    - Case folding
    - Whitespace collapse (tabs, newlines, repeated spaces)
    - Punctuation that lab reports attach to names (commas, periods
      after initials, quotes)

    Hyphens and apostrophes inside a name are kept as part of the token
    ("Smith-Jones", "O'Brien") because they carry identity.
    """

    # Punctuation replaced by a space before tokenizing
    SEPARATOR_PUNCTUATION = r'[,;:()\[\]{}"]'

    def normalize(self, text: str) -> str:
        """
        Apply the complete normalization pipeline to name text.

        Pipeline order:
        1. Unicode normalization (NFKC)
        2. Separator punctuation to spaces
        3. Trailing periods stripped from each token ("M." -> "M")
        4. Case folding
        5. Whitespace collapse and trim

        Args:
            text: Raw name text

        Returns:
            Normalized name, or '' for empty / non-string input

        Examples:
            >>> normalizer = TextNormalizer()
            >>> normalizer.normalize("  JOHN   M.  Doe ")
            'john m doe'
            >>> normalizer.normalize("Doe, John")
            'doe john'
        """
        if not text or not isinstance(text, str):
            return ''

        text = unicodedata.normalize('NFKC', text)
        text = re.sub(self.SEPARATOR_PUNCTUATION, ' ', text)
        text = self._strip_token_periods(text)
        text = text.casefold()
        text = self._collapse_whitespace(text)

        return text.strip()

    def tokens(self, text: str) -> list:
        """Split normalized text into whitespace-delimited tokens."""
        normalized = self.normalize(text)
        return normalized.split(' ') if normalized else []

    def _strip_token_periods(self, text: str) -> str:
        # "J.R." keeps its inner period, only the trailing one goes
        return re.sub(r'\.+(?=\s|$)', '', text)

    def _collapse_whitespace(self, text: str) -> str:
        return re.sub(r'\s+', ' ', text)


# Module-level singleton for convenience function
_normalizer_instance = None


def _get_normalizer() -> TextNormalizer:
    """Get or create the module-level TextNormalizer singleton."""
    global _normalizer_instance
    if _normalizer_instance is None:
        _normalizer_instance = TextNormalizer()
    return _normalizer_instance


def normalize_text(text: str) -> str:
    """
    Convenience function for name normalization.

    TextNormalizer holds no per-call state, so the shared singleton is
    safe to use from concurrent requests.

    Args:
        text: Name text to normalize

    Returns:
        Normalized text string
    """
    return _get_normalizer().normalize(text)
