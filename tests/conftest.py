import pytest

from brandsplit.matcher import compile_tokens


@pytest.fixture()
def matcher():
    """Matcher for the foodsisters brand used across the tests."""
    return compile_tokens(["foodsisters", "foodsister"])
