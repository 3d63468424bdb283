#
# Numflow - Diff Tests
#

# Third-party ----------------------------------------------------------------------------------------------------------
import pytest

# Local ----------------------------------------------------------------------------------------------------------------
from numflow.diff import ChangeKind, PartChange, diff, trend
from numflow.formatting import NumberFormat
from numflow.parts import to_keyed_parts


# Tests ----------------------------------------------------------------------------------------------------------------

def kinds(changes) -> list[tuple[str, str]]:
    return [(str(c.kind), c.key) for c in changes]


class TestDiff:
    """Tests for per-key transition planning."""

    def test_digit_growth(self):
        """A new most significant digit enters, existing digits roll."""
        changes = diff(to_keyed_parts(99), to_keyed_parts(100))
        assert kinds(changes) == [
            ("enter", "integer:2"), ("update", "integer:1"), ("update", "integer:0"),
        ]

    def test_digit_shrink(self):
        changes = diff(to_keyed_parts(100), to_keyed_parts(99))
        assert kinds(changes) == [
            ("update", "integer:1"), ("update", "integer:0"), ("exit", "integer:2"),
        ]

    def test_unchanged(self):
        data = to_keyed_parts(1234.5)
        assert {c.kind for c in diff(data, to_keyed_parts(1234.5))} == {ChangeKind.KEEP}

    def test_partial_update(self):
        """Only digits whose value changed are updated."""
        changes = diff(to_keyed_parts(120), to_keyed_parts(125))
        assert kinds(changes) == [
            ("keep", "integer:2"), ("keep", "integer:1"), ("update", "integer:0"),
        ]

    def test_symbol_text_change(self):
        """A symbol whose text changes exits and re-enters under the same key."""
        fmt = NumberFormat(sign_display="always")
        changes = diff(to_keyed_parts(5, fmt), to_keyed_parts(-5, fmt))
        assert kinds(changes) == [
            ("exit", "sign:0"), ("enter", "sign:0"), ("keep", "integer:0"),
        ]
        assert changes[0].before.value == "+"
        assert changes[1].after.value == "-"

    def test_fraction_appears(self):
        changes = diff(to_keyed_parts(1), to_keyed_parts(1.5))
        assert kinds(changes) == [
            ("keep", "integer:0"), ("enter", "decimal:0"), ("enter", "fraction:0"),
        ]

    def test_from_none(self):
        """Without a previous render every part enters."""
        changes = diff(None, to_keyed_parts(-12))
        assert kinds(changes) == [("enter", "sign:0"), ("enter", "integer:1"), ("enter", "integer:0")]

    def test_to_none(self):
        """An abstained render makes every part exit."""
        changes = diff(to_keyed_parts(12), to_keyed_parts(float("nan")))
        assert kinds(changes) == [("exit", "integer:1"), ("exit", "integer:0")]

    @pytest.mark.parametrize('before, after, expected', [
        pytest.param(3, 7, 4, id='up'),
        pytest.param(7, 3, -4, id='down'),
    ])
    def test_delta(self, before, after, expected):
        (change,) = diff(to_keyed_parts(before), to_keyed_parts(after))
        assert change.kind is ChangeKind.UPDATE
        assert change.delta == expected

    def test_delta_not_update(self):
        assert PartChange(ChangeKind.ENTER, "integer:0").delta == 0


class TestTrend:
    """Tests for value change direction."""

    @pytest.mark.parametrize('before, after, expected', [
        pytest.param(99, 100, 1, id='increase'),
        pytest.param(100, 99, -1, id='decrease'),
        pytest.param(5, 5, 0, id='equal'),
        pytest.param(None, 5, 0, id='no_previous'),
        pytest.param(5, float("nan"), 0, id='nan'),
    ])
    def test_numbers(self, before, after, expected):
        assert trend(before, after) == expected

    def test_data(self):
        assert trend(to_keyed_parts("1.5"), to_keyed_parts(-2)) == -1
