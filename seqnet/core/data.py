"""Shape-typed numeric containers exchanged between layers.

A container type is a :class:`Data` subclass that knows how to build a value
from a flat list of floats plus a concrete shape (``cast``), how to report
the shape of one of its values (``shape_of``) and how to flatten a value back
(``to_flat_list``).  The module level helpers dispatch on the container type
passed in, mirroring how layers tag the type of data they consume.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, List, Tuple, Type

import numpy as np

from ..errors import ShapeError
from .types import ANY, Array, Shape

Concrete = Tuple[int, ...]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, np.number)) and not isinstance(value, bool)


def _flatten(value: Any) -> List[float]:
    if _is_number(value):
        return [float(value)]
    if isinstance(value, np.ndarray):
        return value.astype(np.float64).ravel().tolist()
    if isinstance(value, (str, bytes)):
        raise ShapeError(f"cannot flatten text value {value!r}")
    if isinstance(value, Iterable):
        flat: List[float] = []
        for item in value:
            flat.extend(_flatten(item))
        return flat
    raise ShapeError(f"cannot flatten value of type {type(value).__name__}")


class Data:
    """Base class for container types.

    Subclasses implement :meth:`cast` and :meth:`shape_of`.  Types whose values
    are iterable get :meth:`to_flat_list` for free.
    """

    @classmethod
    def cast(cls, flat: List[float], shape: Concrete) -> Any:
        raise NotImplementedError

    @classmethod
    def shape_of(cls, value: Any) -> Concrete:
        raise NotImplementedError

    @classmethod
    def to_flat_list(cls, value: Any) -> List[float]:
        return _flatten(value)

    @classmethod
    def is_type(cls, value: Any) -> bool:
        return isinstance(value, cls)


class List1D(Data):
    """A flat ``list`` of floats.

    Only vector shapes fit: every dimension but one must be 1.
    """

    @classmethod
    def cast(cls, flat: List[float], shape: Concrete) -> List[float]:
        if sum(1 for dim in shape if dim != 1) > 1:
            raise ShapeError(f"List1D cannot hold shape {list(shape)}; use List2D or DMatrix")
        return [float(x) for x in flat]

    @classmethod
    def shape_of(cls, value: List[float]) -> Concrete:
        return (len(value),)

    @classmethod
    def is_type(cls, value: Any) -> bool:
        return isinstance(value, list) and all(_is_number(x) for x in value)


class List2D(Data):
    """A ``list`` of equal-length rows of floats.

    Shapes with more than two dimensions fold their leading dimensions into
    rows; a one dimensional shape becomes a single row.
    """

    @classmethod
    def cast(cls, flat: List[float], shape: Concrete) -> List[List[float]]:
        cols = shape[-1]
        rows = int(np.prod(shape[:-1])) if len(shape) > 1 else 1
        return [[float(x) for x in flat[r * cols : (r + 1) * cols]] for r in range(rows)]

    @classmethod
    def shape_of(cls, value: List[List[float]]) -> Concrete:
        return (len(value), len(value[0]) if value else 0)

    @classmethod
    def is_type(cls, value: Any) -> bool:
        if not isinstance(value, list) or not value:
            return False
        width = len(value[0]) if isinstance(value[0], list) else 0
        if width <= 0:
            return False
        return all(
            isinstance(row, list) and len(row) == width and all(_is_number(x) for x in row)
            for row in value
        )


@dataclass(frozen=True, eq=False)
class DMatrix(Data):
    """Dense float64 numpy array of any rank."""

    values: Array

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", np.asarray(self.values, dtype=np.float64))

    @classmethod
    def build(cls, data: Any) -> "DMatrix":
        """Wrap nested data, turning a flat sequence into a column vector."""

        values = np.asarray(data, dtype=np.float64)
        if values.ndim == 1:
            values = values.reshape(-1, 1)
        return cls(values)

    @classmethod
    def cast(cls, flat: List[float], shape: Concrete) -> "DMatrix":
        return cls(np.asarray(flat, dtype=np.float64).reshape(shape))

    @classmethod
    def shape_of(cls, value: Any) -> Concrete:
        if isinstance(value, DMatrix):
            return tuple(int(d) for d in value.values.shape)
        return tuple(int(d) for d in np.shape(value))

    @classmethod
    def to_flat_list(cls, value: Any) -> List[float]:
        if isinstance(value, DMatrix):
            return value.values.ravel().tolist()
        return _flatten(value)

    @property
    def shape(self) -> Concrete:
        return DMatrix.shape_of(self)

    def __iter__(self):
        return iter(self.values.ravel().tolist())

    def __len__(self) -> int:
        return int(self.values.size)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DMatrix):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self.values, other.values))


DataType = Type[Data]


def validate_shape(shape: Shape | None) -> tuple:
    """Return ``shape`` as a tuple or raise :class:`ShapeError`."""

    if shape is None:
        raise ShapeError("shape must not be None")
    dims = tuple(shape)
    if not dims:
        raise ShapeError("shape must not be empty")
    wildcards = sum(1 for dim in dims if dim is ANY)
    if wildcards > 1:
        raise ShapeError(f"shape {list(dims)} has more than one wildcard dimension")
    for dim in dims:
        if dim is ANY:
            continue
        if not _is_number(dim) or int(dim) != dim or dim <= 0:
            raise ShapeError(f"shape {list(dims)} has an invalid dimension {dim!r}")
    return dims


def resolve_shape(shape: Shape | None, total: int) -> Concrete:
    """Resolve the wildcard in ``shape`` so that it holds ``total`` elements."""

    dims = validate_shape(shape)
    known = int(np.prod([int(d) for d in dims if d is not ANY], dtype=np.int64))
    if any(dim is ANY for dim in dims):
        if total == 0 or total % known:
            raise ShapeError(f"{total} elements do not divide evenly into shape {list(dims)}")
        fill = total // known
        return tuple(fill if dim is ANY else int(dim) for dim in dims)
    if known != total:
        raise ShapeError(f"shape {list(dims)} holds {known} elements, data has {total}")
    return tuple(int(dim) for dim in dims)


def cast(data_type: DataType, data: Any, shape: Shape | None) -> Any:
    """Wrap raw flat or nested ``data`` as ``data_type`` with ``shape``."""

    dims = validate_shape(shape)
    if isinstance(data, Data) and data_type.is_type(data) and tuple(data_type.shape_of(data)) == dims:
        return data
    flat = _flatten(data)
    return data_type.cast(flat, resolve_shape(dims, len(flat)))


def infer_type(value: Any) -> DataType:
    """Return the container type ``value`` belongs to."""

    if isinstance(value, Data):
        return type(value)
    tagged = getattr(value, "data_type", None)
    if isinstance(tagged, type) and issubclass(tagged, Data):
        return tagged
    if isinstance(value, np.ndarray):
        if value.size == 0:
            raise ShapeError("cannot infer the type of empty data")
        return DMatrix
    if isinstance(value, list):
        if not value:
            raise ShapeError("cannot infer the type of empty data")
        if List1D.is_type(value):
            return List1D
        if List2D.is_type(value):
            return List2D
    raise ShapeError(f"cannot infer a data type for {type(value).__name__}")


def to_flat_list(data_type: DataType, value: Any) -> List[float]:
    """Flatten ``value`` in row-major order."""

    return data_type.to_flat_list(value)


def shape(data_type: DataType, value: Any) -> Concrete:
    """Return the concrete shape of ``value``."""

    return tuple(data_type.shape_of(value))


def convert(data_type: DataType, value: Any, target_shape: Shape | None) -> Any:
    """Reshape ``value`` to ``target_shape`` preserving element order."""

    flat = data_type.to_flat_list(value)
    return data_type.cast(flat, resolve_shape(target_shape, len(flat)))


def decode(value: Any) -> List[float]:
    """Flatten any supported value using its inferred type."""

    return to_flat_list(infer_type(value), value)


__all__ = [
    "ANY",
    "Data",
    "DMatrix",
    "List1D",
    "List2D",
    "cast",
    "convert",
    "decode",
    "infer_type",
    "resolve_shape",
    "shape",
    "to_flat_list",
    "validate_shape",
]
