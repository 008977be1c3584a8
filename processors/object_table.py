"""
Typed access to the pikepdf object table.

pikepdf resolves indirect references when a dictionary entry is read, so
every accessor here follows one level of indirection and returns either the
value in the requested Python type or None. Missing keys and mistyped values
are not errors.
"""

import logging
from decimal import Decimal
from typing import Iterator, Optional, Tuple

import pikepdf

from models.pdf_types import ObjectRef

logger = logging.getLogger(__name__)


def object_ref(obj: pikepdf.Object) -> Optional[ObjectRef]:
    """Return the indirect reference of an object, or None for direct objects."""
    if obj is None or not obj.is_indirect:
        return None
    objnum, gen = obj.objgen
    return ObjectRef(objnum, gen)


def lookup_maybe(dictionary: pikepdf.Object, key: str) -> Optional[pikepdf.Object]:
    """Resolve a dictionary entry, returning None when absent or null."""
    try:
        value = dictionary.get(key)
    except (TypeError, ValueError, pikepdf.PdfError) as e:
        logger.debug(f"Could not read {key}: {e}")
        return None
    return value


def get_int(dictionary: pikepdf.Object, key: str) -> Optional[int]:
    value = lookup_maybe(dictionary, key)
    # bool is an int subclass; PDF booleans are never dimensions
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, Decimal) and value == value.to_integral_value():
        return int(value)
    return None


def get_name(dictionary: pikepdf.Object, key: str) -> Optional[str]:
    """Return a name entry as a string including its leading slash."""
    value = lookup_maybe(dictionary, key)
    if isinstance(value, pikepdf.Name):
        return str(value)
    return None


def get_color_space(dictionary: pikepdf.Object, key: str) -> Optional[str]:
    """
    Return the color space name.

    Array color spaces such as [/ICCBased <stream>] or [/Indexed ...] are
    reported by their family name.
    """
    value = lookup_maybe(dictionary, key)
    if isinstance(value, pikepdf.Name):
        return str(value)
    if isinstance(value, pikepdf.Array) and len(value) > 0 and isinstance(value[0], pikepdf.Name):
        return str(value[0])
    return None


def get_filters(dictionary: pikepdf.Object, key: str) -> Tuple[str, ...]:
    """Return the filter chain as a tuple of names (possibly empty)."""
    value = lookup_maybe(dictionary, key)
    if isinstance(value, pikepdf.Name):
        return (str(value),)
    if isinstance(value, pikepdf.Array):
        return tuple(str(item) for item in value if isinstance(item, pikepdf.Name))
    return ()


def get_reference(dictionary: pikepdf.Object, key: str) -> Optional[ObjectRef]:
    """Return the indirect reference stored under key without dereferencing it further."""
    value = lookup_maybe(dictionary, key)
    if value is None or isinstance(value, (pikepdf.Name, int, bool, Decimal, str)):
        return None
    return object_ref(value)


class ObjectTable:
    """
    Read-only view over a document's resolved object table.

    Iteration yields (position, reference, object) in object-number order;
    position is 1-based and counts every object, not only streams.
    """

    def __init__(self, pdf: pikepdf.Pdf):
        self._pdf = pdf

    def __iter__(self) -> Iterator[Tuple[int, Optional[ObjectRef], pikepdf.Object]]:
        for position, obj in enumerate(self._pdf.objects, start=1):
            yield position, object_ref(obj), obj

    def __len__(self) -> int:
        return len(self._pdf.objects)

    @staticmethod
    def is_stream(obj: pikepdf.Object) -> bool:
        return isinstance(obj, pikepdf.Stream)
