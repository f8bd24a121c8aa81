from __future__ import annotations

from typing import Iterator, Optional, overload, Sequence, TypeVar


# Type variables
T_co = TypeVar("T_co", covariant=True)


# ============
# SequenceView
# ============


class SequenceView(Sequence[T_co]):
    """Read-only window into the storage of a sequence.

    A view without `window` covers the whole data and follows its length.
    Slicing a view gives another view over the same storage, pinned to the
    positions the slice selected at that moment. Element changes show
    through both kinds of views; reading a pinned position that no longer
    exists raises `IndexError`.
    """

    def __init__(
            self,
            data: Sequence[T_co],
            window: Optional[range] = None,
    ) -> None:
        self._data = data
        self._window = window

    @property
    def positions(self) -> range:
        """Positions of the underlying data covered by the view."""
        if self._window is None:
            return range(len(self._data))
        return self._window

    @overload
    def __getitem__(self, index: int) -> T_co: ...

    @overload
    def __getitem__(self, index: slice) -> SequenceView[T_co]: ...

    def __getitem__(self, index):
        positions = self.positions
        if isinstance(index, slice):
            return SequenceView(self._data, positions[index])
        return self._data[positions[index]]

    def __len__(self) -> int:
        return len(self.positions)

    def __iter__(self) -> Iterator[T_co]:
        for position in self.positions:
            yield self._data[position]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Sequence) and not isinstance(other, (str, bytes)):
            return list(self) == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self)!r})"
