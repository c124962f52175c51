import pytest

from ts_tools.si.standards import Context, Standards


# Codec contexts shared by the table and descriptor tests.
@pytest.fixture
def context() -> Context:
    return Context()


@pytest.fixture
def japan_context() -> Context:
    return Context(standards=Standards.JAPAN)
