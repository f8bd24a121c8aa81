import pytest

from typedseq.utils import SequenceView


# ============
# SequenceView
# ============


# Sequence methods
# ----------------


def test_sequence_view_contains():
    view = SequenceView(["a", None, 3])
    assert None in view
    assert "b" not in view


def test_sequence_view_getitem():
    view = SequenceView(["a", None, 3])
    assert view[0] == "a"
    assert view[-1] == 3
    with pytest.raises(IndexError):
        view[3]


def test_sequence_view_bool():
    assert not SequenceView([])
    assert SequenceView([0])


def test_sequence_view_is_read_only():
    view = SequenceView([1, 2])
    with pytest.raises(TypeError):
        view[0] = 5  # type: ignore[index]


# Windows
# -------


def test_sequence_view_follows_length_of_data():
    data = [1]
    view = SequenceView(data)
    data.append(2)
    assert len(view) == 2
    assert view == [1, 2]


def test_sequence_view_slice_is_view():
    data = [10, 20, 30, 40]
    window = SequenceView(data)[1:3]
    assert isinstance(window, SequenceView)
    assert window.positions == range(1, 3)
    assert window == [20, 30]

    data[1] = 99
    assert window[0] == 99


def test_sequence_view_slice_is_pinned():
    data = [10, 20, 30]
    window = SequenceView(data)[1:]
    data.append(40)
    assert window == [20, 30]


def test_sequence_view_slice_of_slice():
    data = list(range(10))
    window = SequenceView(data)[2:8][::2]
    assert window.positions == range(2, 8, 2)
    assert window == [2, 4, 6]
    assert list(reversed(window)) == [6, 4, 2]


def test_sequence_view_reversed_slice():
    view = SequenceView(["a", "b", "c"])[::-1]
    assert view == ["c", "b", "a"]
    assert view[0] == "c"


def test_sequence_view_pinned_position_gone():
    data = [1, 2, 3]
    window = SequenceView(data)[1:]
    data.pop()
    with pytest.raises(IndexError):
        window[1]


# Other
# -----


def test_sequence_view_eq():
    assert SequenceView([1, 2]) == SequenceView([0, 1, 2])[1:]
    assert SequenceView([1, 2]) == (1, 2)
    assert SequenceView([1, 2]) != [2, 1]
    assert SequenceView(["a"]) != "a"


def test_sequence_view_repr():
    assert repr(SequenceView([1, "a", 2])[:2]) == "SequenceView([1, 'a'])"
