# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

from typing import Any, Callable, Self, TypedDict, TypeVar, cast

DECORATED_T = TypeVar("DECORATED_T", bound="Callable[..., Any] | type")


S = TypeVar("S", bound="StackableDecorator")


class DecoratorMetadata(TypedDict):
    decorators: "list[StackableDecorator]"
    decorators_by_type: "dict[Any, list[StackableDecorator]]"


class StackableDecorator:
    """
    Base class for declarative markers that can be stacked on functions and classes.

    Every applied marker is stored, in application order, on the decorated
    subject itself. Markers of the same family share a ``decorator_key`` so
    that, for example, ``Get`` and ``Post`` are both found by ``HttpMapping.get``.
    """

    _ATTR_NAME: str = "__sucuri_stackable_decorator__"

    def __call__(self, subject: DECORATED_T) -> DECORATED_T:
        self.register(subject, self)
        return subject

    @classmethod
    def decorator_key(cls) -> Any:
        return cls

    @classmethod
    def get_or_set_metadata(cls, subject: Any) -> DecoratorMetadata:
        # Looked up in __dict__ so that a subclass never shares its parent's list
        if cls._ATTR_NAME not in subject.__dict__:
            setattr(
                subject,
                cls._ATTR_NAME,
                DecoratorMetadata(decorators=[], decorators_by_type={}),
            )
        return cast(DecoratorMetadata, getattr(subject, cls._ATTR_NAME))

    @classmethod
    def get_metadata(cls, subject: Any) -> DecoratorMetadata | None:
        metadata = getattr(subject, "__dict__", {}).get(cls._ATTR_NAME)
        return cast(DecoratorMetadata | None, metadata)

    @classmethod
    def register(cls, subject: Any, decorator: "StackableDecorator") -> None:
        metadata = cls.get_or_set_metadata(subject)
        metadata["decorators"].append(decorator)
        metadata["decorators_by_type"].setdefault(
            decorator.decorator_key(), []
        ).append(decorator)

    @classmethod
    def get(cls, subject: Any) -> list[Self]:
        metadata = cls.get_metadata(subject)
        if metadata is None:
            return []

        if cls is StackableDecorator:
            return cast(list[Self], metadata["decorators"])
        return cast(
            list[Self], metadata["decorators_by_type"].get(cls.decorator_key(), [])
        )

    @classmethod
    def get_last(cls, subject: Any) -> Self | None:
        decorators = cls.get(subject)
        if decorators:
            return decorators[-1]
        return None

    @classmethod
    def get_bound_from_type(cls, subject_type: type) -> Self | None:
        """
        Retrieve the decorator of this type closest to ``subject_type`` in its MRO.
        """
        decorators = resolve_class_decorators(subject_type, cls)
        return decorators[-1] if decorators else None


def resolve_class_decorators(subject: Any, decorator_cls: type[S]) -> list[S]:
    cls = subject if isinstance(subject, type) else type(subject)

    collected: list[S] = []
    # Base classes first so that the most-derived decorator ends up last
    for base in reversed(cls.mro()):
        collected.extend(decorator_cls.get(base))

    return collected
