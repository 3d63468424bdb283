#
# Pytest Fixtures
#

# Third-party ----------------------------------------------------------------------------------------------------------
import pytest

# Local ----------------------------------------------------------------------------------------------------------------
from numflow.formatting import NumberFormatter


# Fixtures -------------------------------------------------------------------------------------------------------------

@pytest.fixture
def parts_of():
    """Fixture to format a value and return its parts as (type, value) pairs."""

    def _parts(value, **options) -> list[tuple[str, str]]:
        return [(str(p.type), p.value) for p in NumberFormatter(**options).format_to_parts(value)]

    return _parts


@pytest.fixture
def slots():
    """Fixture to extract (key, place) pairs from a keyed bucket, digits only."""

    def _slots(bucket) -> list[tuple[str, int]]:
        return [(p.key, p.place) for p in bucket if hasattr(p, "place")]

    return _slots
