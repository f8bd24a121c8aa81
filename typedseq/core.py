from __future__ import annotations

from dataclasses import dataclass
import enum
import logging
from typing import (
    Any,
    Callable,
    Final,
    FrozenSet,
    Generic,
    Iterable,
    Iterator,
    List,
    Mapping,
    MutableSequence,
    Optional,
    overload,
    Protocol,
    runtime_checkable,
    Sequence,
    TypeVar,
    Union,
)
from re import Pattern
import warnings

from tabulate import tabulate

from typedseq.coercion import compile_pattern, is_loose_falsy, to_integer, to_string
from typedseq.utils import SequenceView


logger = logging.getLogger(__name__)


# Type variables
T = TypeVar("T")
U = TypeVar("U")


# =====
# Flags
# =====


class Flags(enum.IntFlag):
    """Property visibility flags. Kept on the sequence, never consulted."""
    STD_PROP_LIST = 1
    ARRAY_AS_PROPS = 2


# Constants
STRING_FORM: Final[str] = "Array"
DEFAULT_FLAGS: Final[Flags] = Flags.STD_PROP_LIST
EMPTY_SENTINEL: Final[bool] = False
SUCCESS_CODES: Final[FrozenSet[int]] = frozenset({200, 201, 204, 206})


IteratorFactory = Callable[[List[Any]], Iterator[Any]]
Callback = Callable[[Any, int, Any], Any]


# =========
# Responses
# =========


@runtime_checkable
class SupportsIsOk(Protocol):
    """Element that can tell whether the request behind it succeeded."""

    def is_ok(self) -> bool: ...


def supports_is_ok(item: object) -> bool:
    """Whether `item` is an instance with a callable `is_ok()`.

    Classes and objects with a plain `is_ok` attribute don't count.
    """
    return (
        not isinstance(item, type)
        and isinstance(item, SupportsIsOk)
        and callable(getattr(item, "is_ok", None))
    )


@dataclass(frozen=True)
class Response:
    header: Mapping[str, str]
    body: Any
    status: int

    def is_ok(self, codes: Optional[Iterable[int]] = None) -> bool:
        """Whether `status` is one of `codes` (`SUCCESS_CODES` by default)."""
        accepted = SUCCESS_CODES if codes is None else frozenset(codes)
        return self.status in accepted


# ===
# Ref
# ===


@dataclass
class Ref(Generic[T]):
    """Mutable cell to pass as `bind` when a callback accumulates state.

    Not synchronized. Callbacks sharing a `Ref` must run one at a time.
    """
    value: T


# =============
# TypedSequence
# =============


class TypedSequence(MutableSequence[T]):
    """Ordered container of response data with convenience operations.

    Operations producing a sequence return a new instance of the same class
    with the same `flags` and `iterator_class`; the source is left untouched.
    """

    def __init__(
            self,
            data: Any = None,
            flags: Flags = DEFAULT_FLAGS,
            iterator_class: IteratorFactory = iter,
    ) -> None:
        self._data: List[T] = _to_list(data)
        self._flags = Flags(flags)
        self._iterator_class = iterator_class

    # Sequence protocol
    # -----------------

    @overload
    def __getitem__(self, index: int) -> T: ...

    @overload
    def __getitem__(self, index: slice) -> TypedSequence[T]: ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return self._derive(self._data[index])
        return self._data[index]

    @overload
    def __setitem__(self, index: int, value: T) -> None: ...

    @overload
    def __setitem__(self, index: slice, value: Iterable[T]) -> None: ...

    def __setitem__(self, index, value):
        self._data[index] = value

    def __delitem__(self, index: Union[int, slice]) -> None:
        del self._data[index]

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[T]:
        return self._iterator_class(self._data)

    def insert(self, index: int, value: T) -> None:
        self._data.insert(index, value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, TypedSequence):
            return self._data == other._data
        if isinstance(other, Sequence) and not isinstance(other, (str, bytes)):
            return self._data == list(other)
        return NotImplemented

    def __str__(self) -> str:
        return STRING_FORM

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._data!r})"

    @property
    def data(self) -> SequenceView[T]:
        return SequenceView(self._data)

    @property
    def flags(self) -> Flags:
        return self._flags

    @property
    def iterator_class(self) -> IteratorFactory:
        return self._iterator_class

    def _derive(self, items: Iterable[U]) -> TypedSequence[U]:
        return type(self)(list(items), self._flags, self._iterator_class)

    # Coercion
    # --------

    def map_integer(self) -> List[int]:
        """Return the elements coerced to `int`."""
        return [to_integer(item) for item in self._data]

    def map_string(
            self,
            pattern: Union[str, Pattern[str], None] = None,
    ) -> List[str]:
        """Return the elements coerced to `str`.

        When `pattern` is given only strings it matches are returned.
        Can raise `re.error`.
        """
        strings = [to_string(item) for item in self._data]
        if pattern is None:
            return strings
        regex = compile_pattern(pattern)
        return [string for string in strings if regex.search(string)]

    # Inspection
    # ----------

    def are_ok(self) -> bool:
        """Whether every response in the sequence succeeded.

        Elements not implementing `SupportsIsOk` are skipped, so a sequence
        without any responses is ok.
        """
        failed = [
            index
            for index, item in enumerate(self._data)
            if supports_is_ok(item) and item.is_ok() is False
        ]
        if failed:
            logger.debug("Failed responses at indexes %s", failed)
        return not failed

    def first(self, default: Any = EMPTY_SENTINEL) -> Any:
        """Return the first element or `default` (`False`) if empty."""
        return self._data[0] if self._data else default

    def last(self, default: Any = EMPTY_SENTINEL) -> Any:
        """Return the last element or `default` (`False`) if empty."""
        return self._data[-1] if self._data else default

    # Callbacks
    # ---------

    def each(self, callback: Callback, bind: Any = None) -> TypedSequence[T]:
        """Call `callback(element, index, bind)` for every element.

        Return the sequence itself.
        """
        for index, item in enumerate(list(self._data)):
            callback(item, index, bind)
        return self

    def map(self, callback: Callback, bind: Any = None) -> TypedSequence[Any]:
        """Return new sequence of `callback(element, index, bind)` results."""
        return self._derive([
            callback(item, index, bind)
            for index, item in enumerate(list(self._data))
        ])

    def filter(self, callback: Callback, bind: Any = None) -> TypedSequence[T]:
        """Return new sequence of elements for which `callback` didn't return `False`.

        Only `False` itself drops an element. Other falsy results like `0`,
        `""` or `None` keep it.
        """
        items = list(self._data)
        kept = [
            item
            for index, item in enumerate(items)
            if callback(item, index, bind) is not False
        ]
        logger.debug("filter() kept %d of %d elements", len(kept), len(items))
        return self._derive(kept)

    def reduce(self, callback: Callback, bind: Any = None) -> TypedSequence[T]:
        """Deprecated name of `filter()`."""
        warnings.warn(
            "`reduce()` filters elements, use `filter()` instead",
            DeprecationWarning,
            stacklevel=2,
        )
        return self.filter(callback, bind)

    # Normalization
    # -------------

    def compress(self) -> TypedSequence[T]:
        """Return new sequence without loose-falsy elements."""
        kept = [item for item in self._data if not is_loose_falsy(item)]
        logger.debug("compress() dropped %d elements", len(self._data) - len(kept))
        return self._derive(kept)

    def reindex(self) -> TypedSequence[T]:
        """Return new sequence with the same elements.

        Python sequences are always indexed from zero without gaps, so this
        is a copy.
        """
        return self._derive(self._data)

    # Presentation
    # ------------

    def to_table(self, tablefmt: str = "simple") -> str:
        return tabulate(
            [
                (index, type(item).__name__, repr(item))
                for index, item in enumerate(self._data)
            ],
            headers=("Index", "Type", "Value"),
            colalign=("right", "left", "left"),
            tablefmt=tablefmt,
        )


def _to_list(data: Any) -> List[Any]:
    """Copy constructor input into a list.

    Mappings contribute their values and plain objects their public
    attributes. Can raise `TypeError`.
    """
    if data is None:
        return []
    if isinstance(data, (str, bytes, bytearray)):
        raise TypeError(
            f"Given input have wrong type ({type(data)}). Iterable, mapping or"
            " object needed."
        )
    if isinstance(data, Mapping):
        return list(data.values())
    if isinstance(data, Iterable):
        return list(data)
    if hasattr(data, "__dict__"):
        return [
            value
            for name, value in vars(data).items()
            if not name.startswith("_")
        ]
    raise TypeError(
        f"Given input have wrong type ({type(data)}). Iterable, mapping or"
        " object needed."
    )
