"""Pydantic models for GameMaker: Studio object resources.

Defines the in-memory shape of a native ``*.object.gmx`` document:

- ``Property``: one leaf property of ``<object>`` (``spriteName``, ``solid``...).
- ``Argument``: one ``<argument>`` of an action.
- ``ActionBlock``: one ``<action>`` inside an event.
- ``EventBlock``: one ``<event>`` with its ordered actions.
- ``NativeResource``: the whole object.

Event and action order is execution order, so every list here keeps
document order.  All models are frozen; use ``model_copy(update=...)``
to derive a modified resource.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ArgumentType(str, Enum):
    """Value category of an action argument slot."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    RESOURCE = "resource"


# GameMaker argument kind codes grouped by value category.  Everything
# not listed here (sprites, sounds, objects, rooms...) names a resource.
_STRING_KINDS = frozenset({0, 1, 2, 15})
_NUMBER_KINDS = frozenset({4, 13})
_BOOLEAN_KINDS = frozenset({3})


class ResourceKind(str, Enum):
    """Kinds of resource the manifest can reference."""

    OBJECT = "object"
    SCRIPT = "script"

    @property
    def group(self) -> str:
        """Name of the top-level manifest group holding this kind."""
        return f"{self.value}s"


class Property(BaseModel):
    """A leaf child element of ``<object>``.

    Attributes:
        tag: Element name, e.g. ``spriteName``.
        value: Element text (empty string for ``<tag></tag>``).
    """

    tag: str
    value: str = ""

    model_config = {"frozen": True}


class Argument(BaseModel):
    """One action argument.

    Attributes:
        kind: GameMaker argument kind code.
        tag: Name of the value element (``string``, ``object``, ...).
        value: Text of the value element.
    """

    kind: int
    tag: str = "string"
    value: str = ""

    model_config = {"frozen": True}

    @property
    def value_type(self) -> ArgumentType:
        """Classify the argument slot by its kind code."""
        if self.kind in _STRING_KINDS:
            return ArgumentType.STRING
        if self.kind in _NUMBER_KINDS:
            return ArgumentType.NUMBER
        if self.kind in _BOOLEAN_KINDS:
            return ArgumentType.BOOLEAN
        return ArgumentType.RESOURCE


class ActionBlock(BaseModel):
    """A single ``<action>`` element.

    ``(lib_id, action_id)`` identifies the action kind; ``applies_to``
    is the target reference (``whoName``).
    """

    lib_id: int = 1
    action_id: int = 603
    kind: int = 7
    use_relative: int = 0
    is_question: int = 0
    use_apply_to: int = -1
    exe_type: int = 2
    function_name: str = ""
    code_string: str = ""
    applies_to: str = "self"
    relative: int = 0
    is_not: int = 0
    arguments: list[Argument] = []

    model_config = {"frozen": True}


class EventBlock(BaseModel):
    """A single ``<event>`` element.

    Attributes:
        event_type: ``eventtype`` attribute (0 = create, 4 = collision...).
        number: ``enumb`` attribute, ``None`` for collision events.
        target: ``ename`` attribute, only set for collision events.
        actions: Actions in execution order.
    """

    event_type: int
    number: int | None = 0
    target: str | None = None
    actions: list[ActionBlock] = []

    model_config = {"frozen": True}


class NativeResource(BaseModel):
    """A parsed ``*.object.gmx`` document.

    Attributes:
        properties: Leaf properties in document order.
        events: Event blocks in document order.
        shape_points: ``<PhysicsShapePoints>`` entries, or ``None`` when
            the document has no such element.
    """

    properties: list[Property] = []
    events: list[EventBlock] = []
    shape_points: list[str] | None = None

    model_config = {"frozen": True}

    def get(self, tag: str, default: str | None = None) -> str | None:
        """Return the value of property *tag*, or *default* if absent."""
        for prop in self.properties:
            if prop.tag == tag:
                return prop.value
        return default

    def has_property(self, tag: str) -> bool:
        """Return ``True`` if the resource has a property named *tag*."""
        return any(prop.tag == tag for prop in self.properties)
