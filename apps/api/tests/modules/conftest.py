"""
Fixtures shared by the module service tests.
"""

import pytest

from factories import make_school, make_term


@pytest.fixture
def school():
    return make_school()


@pytest.fixture
def term(school):
    return make_term(school)
