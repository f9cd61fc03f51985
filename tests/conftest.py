"""
Pytest configuration and shared fixtures for intake engine tests.

Provides:
- Fresh normalizer, similarity, ranker and classifier instances
- Candidate record and medication factories
- Temporary directory for config / Excel round trips
"""

import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from drugtest_intake.classification.result_classifier import ResultClassifier
from drugtest_intake.matching.match_ranker import MatchRanker
from drugtest_intake.matching.name_similarity import NameSimilarity
from drugtest_intake.normalization.text_normalizer import TextNormalizer
from drugtest_intake.utils.config_manager import ConfigManager
from tests.fixtures.factories import make_candidate, make_medication


# ============================================================================
# FACTORIES
# ============================================================================

@pytest.fixture
def candidate_factory():
    return make_candidate


@pytest.fixture
def medication_factory():
    return make_medication


# ============================================================================
# ENGINE FIXTURES
# ============================================================================

@pytest.fixture(scope="function")
def default_config() -> ConfigManager:
    """Configuration with built-in defaults only."""
    return ConfigManager()


@pytest.fixture(scope="function")
def text_normalizer() -> TextNormalizer:
    """Fresh text normalizer instance."""
    return TextNormalizer()


@pytest.fixture(scope="function")
def name_scorer(text_normalizer, default_config) -> NameSimilarity:
    """Fresh name similarity scorer."""
    return NameSimilarity(normalizer=text_normalizer, config=default_config)


@pytest.fixture(scope="function")
def ranker(name_scorer, default_config) -> MatchRanker:
    """Fresh match ranker with default scoring."""
    return MatchRanker(name_similarity=name_scorer, config=default_config)


@pytest.fixture(scope="function")
def classifier(default_config) -> ResultClassifier:
    """Fresh result classifier with default constants."""
    return ResultClassifier(config=default_config)


# ============================================================================
# TEMPORARY DIRECTORY FIXTURES
# ============================================================================

@pytest.fixture(scope="function")
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test file operations."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)
