"""testmeta: annotation metadata and message dispatch for test runners.

Public API
----------
The stable public surface is everything exported from this module and
from :mod:`testmeta.annotations` and :mod:`testmeta.messages`.

Example
-------
::

    import testmeta
    from testmeta.annotations import Annotation, annotate

    class Owner(Annotation):
        def __init__(self, team: str) -> None:
            self.team = team

    @annotate(Owner, "payments")
    class CheckoutTests: ...

    [info.annotation.team for info in testmeta.annotations_of(CheckoutTests, Owner)]
    # ['payments']

    testmeta.__version__
    '0.1.0'
"""
from __future__ import annotations

from typing import TYPE_CHECKING

__version__: str = "0.1.0"

if TYPE_CHECKING:
    from testmeta.annotations.collector import AnnotationInfo
    from testmeta.messages.dispatch import HandlerBinding


def annotations_of(element: object, annotation_type: type | str) -> list["AnnotationInfo"]:
    """Return the annotations of ``annotation_type`` on ``element`` and its ancestors.

    Parameters
    ----------
    element:
        A class or function.
    annotation_type:
        An annotation class, or its qualified name or registered alias.

    Returns
    -------
    list[AnnotationInfo]
        Nearest declarations first, each level ordered by type name.

    Raises
    ------
    testmeta.errors.TypeResolutionError
        If ``annotation_type`` is a name that cannot be resolved.
    """
    from testmeta.annotations.collector import annotations_by_name
    from testmeta.annotations.collector import annotations_of as _annotations_of

    if isinstance(annotation_type, str):
        return annotations_by_name(element, annotation_type)
    return _annotations_of(element, annotation_type)


def dispatch_table(message_type: type) -> tuple["HandlerBinding", ...]:
    """Return the default handler slots that apply to ``message_type``."""
    from testmeta.messages.dispatch import dispatch_table as _dispatch_table

    return _dispatch_table(message_type)


__all__ = [
    "__version__",
    "annotations_of",
    "dispatch_table",
]
