"""Shared tables and helpers for native <-> mirror translation."""

import re
from dataclasses import dataclass

# =============================================================================
# Event categories
# =============================================================================
#
# GameMaker stores an event as ``eventtype`` + ``enumb`` (or ``ename`` for
# collisions).  The mirror spells the category as a word and the subtype as
# a trailing token: ``[event alarm 3]``, ``[event collision obj_wall]``.
# =============================================================================

EVENT_NAMES: dict[int, str] = {
    0: "create",
    1: "destroy",
    2: "alarm",
    3: "step",
    4: "collision",
    5: "keyboard",
    6: "mouse",
    7: "other",
    8: "draw",
    9: "keypress",
    10: "keyrelease",
    11: "trigger",
}

EVENT_TYPES: dict[str, int] = {name: code for code, name in EVENT_NAMES.items()}

COLLISION_EVENT = EVENT_TYPES["collision"]


# =============================================================================
# Action templates
# =============================================================================


@dataclass(frozen=True)
class ActionTemplate:
    """Fixed shape of a named action kind.

    An action is written as ``[action <name>]`` only when every fixed
    field and every argument ``(kind, tag)`` matches the template; the
    argument values are then listed under the slot names.
    """

    name: str
    lib_id: int
    action_id: int
    kind: int
    use_relative: int
    is_question: int
    use_apply_to: int
    exe_type: int
    function_name: str
    code_string: str
    slots: tuple[tuple[str, int, str], ...]

    @property
    def arity(self) -> int:
        return len(self.slots)


ACTION_TEMPLATES: dict[str, ActionTemplate] = {
    t.name: t
    for t in (
        ActionTemplate(
            name="code",
            lib_id=1,
            action_id=603,
            kind=7,
            use_relative=0,
            is_question=0,
            use_apply_to=-1,
            exe_type=2,
            function_name="",
            code_string="",
            slots=(("code", 1, "string"),),
        ),
        ActionTemplate(
            name="inherited",
            lib_id=1,
            action_id=604,
            kind=0,
            use_relative=0,
            is_question=0,
            use_apply_to=0,
            exe_type=1,
            function_name="action_inherited",
            code_string="",
            slots=(),
        ),
        ActionTemplate(
            name="comment",
            lib_id=1,
            action_id=203,
            kind=0,
            use_relative=0,
            is_question=0,
            use_apply_to=0,
            exe_type=0,
            function_name="",
            code_string="",
            slots=(("text", 1, "string"),),
        ),
    )
}


# =============================================================================
# Object properties
# =============================================================================

# Native tag -> mirror key for the well-known ``[object]`` properties.
PROPERTY_ALIASES: dict[str, str] = {
    "spriteName": "sprite",
    "solid": "solid",
    "visible": "visible",
    "depth": "depth",
    "persistent": "persistent",
    "parentName": "parent",
    "maskName": "mask",
}

# Properties shown as true/false when they hold GameMaker's -1/0.
BOOLEAN_PROPERTIES = frozenset({"solid", "visible", "persistent"})

NUMERIC_PROPERTIES = frozenset({"depth"})

PHYSICS_PREFIX = "Physics"
SHAPE_POINTS_TAG = "PhysicsShapePoints"
SHAPE_POINTS_KEY = "shape_points"

GM_TRUE = "-1"
GM_FALSE = "0"

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_NUMBER = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


def is_physics_tag(tag: str) -> bool:
    return tag.startswith(PHYSICS_PREFIX)


def physics_key(tag: str) -> str:
    """Return the mirror key for a ``Physics*`` tag.

    ``PhysicsObject`` is the on/off switch and becomes ``enabled``; the
    rest lose their ``PhysicsObject``/``Physics`` prefix and are
    snake-cased (``PhysicsObjectLinearDamping`` -> ``linear_damping``).
    """
    if tag == "PhysicsObject":
        return "enabled"
    stem = tag
    for prefix in ("PhysicsObject", PHYSICS_PREFIX):
        if stem.startswith(prefix):
            stem = stem[len(prefix):]
            break
    return _CAMEL_BOUNDARY.sub("_", stem).lower()


def is_number(text: str) -> bool:
    return bool(_NUMBER.match(text.strip()))


# =============================================================================
# Value fences
# =============================================================================

FENCE_OPEN = "<<<"
DEFAULT_FENCE_TAG = "END"


def needs_fence(value: str) -> bool:
    """Return ``True`` if *value* cannot be written as ``key = value``."""
    return "\n" in value or value != value.strip() or value.startswith(FENCE_OPEN)


def fence_tag(value: str) -> str:
    """Pick a closing tag that does not appear as a line of *value*."""
    lines = {line.strip() for line in value.split("\n")}
    tag = DEFAULT_FENCE_TAG
    counter = 0
    while tag in lines:
        counter += 1
        tag = f"{DEFAULT_FENCE_TAG}{counter}"
    return tag


def format_value(key: str, value: str) -> list[str]:
    """Render one mirror assignment as a list of lines."""
    if needs_fence(value):
        tag = fence_tag(value)
        return [f"{key} {FENCE_OPEN}{tag}", *value.split("\n"), tag]
    if value:
        return [f"{key} = {value}"]
    return [f"{key} ="]
