"""Mirror text format: a human-editable rendering of a GameMaker object.

Grammar
-------
A mirror document is a sequence of sections.  Inside a section every
line is an assignment, either ``key = value`` or a fenced block::

    key <<<END
    any text, kept verbatim
    END

Blank lines and lines starting with ``#`` are ignored outside fences.

``[object]``
    Non-physics properties.  Well-known tags use short keys (``sprite``,
    ``parent``, ``mask``...), ``solid``/``visible``/``persistent`` read
    ``true``/``false``.
``[physics]``
    ``Physics*`` properties as snake_case keys plus ``shape_points``.
``[event <category> [<subtype>]]``
    Starts an event.  Collision events name the other object.
``[action <name>]`` / ``[action <lib>:<id>]``
    One action of the current event, either through a named template
    (``code``, ``inherited``, ``comment``) or spelled out in full.

Anything the parser does not recognise raises ``ParseError``; the parser
never drops content silently.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from ..errors import ParseError
from .common import (
    ACTION_TEMPLATES,
    BOOLEAN_PROPERTIES,
    COLLISION_EVENT,
    EVENT_NAMES,
    EVENT_TYPES,
    FENCE_OPEN,
    GM_FALSE,
    GM_TRUE,
    NUMERIC_PROPERTIES,
    PROPERTY_ALIASES,
    SHAPE_POINTS_KEY,
    ActionTemplate,
    format_value,
    is_number,
    is_physics_tag,
    physics_key,
)
from .models import ActionBlock, Argument, EventBlock, NativeResource, Property

_SECTION = re.compile(r"^\[\s*(?P<name>[A-Za-z_]+)(?:\s+(?P<args>[^\]]*?))?\s*\]$")
_ASSIGN = re.compile(
    r"^(?P<key>[A-Za-z_][\w.-]*(?:[ \t]+[\w:.-]+)*?)[ \t]*"
    r"(?:=[ ]?(?P<value>.*)|" + FENCE_OPEN + r"(?P<tag>\w+)[ \t]*)$"
)
_GENERIC_ACTION = re.compile(r"^(?P<lib>-?\d+):(?P<id>-?\d+)$")

_ALIAS_TO_TAG = {alias: tag for tag, alias in PROPERTY_ALIASES.items()}

# Mirror key -> (ActionBlock attribute, is integer) for fully spelled-out
# actions.  ``applies_to``, ``relative`` and ``not`` apply to every action.
_COMMON_ACTION_KEYS: dict[str, tuple[str, bool]] = {
    "applies_to": ("applies_to", False),
    "relative": ("relative", True),
    "not": ("is_not", True),
}
_GENERIC_ACTION_KEYS: dict[str, tuple[str, bool]] = {
    "kind": ("kind", True),
    "use_relative": ("use_relative", True),
    "question": ("is_question", True),
    "use_apply_to": ("use_apply_to", True),
    "exe_type": ("exe_type", True),
    "function": ("function_name", False),
    "code_string": ("code_string", False),
}


# =============================================================================
# Native -> mirror
# =============================================================================


def native_to_mirror(resource: NativeResource) -> str:
    """Render *resource* as mirror text.

    The output depends only on *resource*, so translating an unchanged
    object twice yields byte-identical text.
    """
    blocks: list[list[str]] = []

    object_lines = ["[object]"]
    physics_lines = ["[physics]"]
    for prop in resource.properties:
        if is_physics_tag(prop.tag):
            physics_lines += format_value(physics_key(prop.tag), prop.value)
            continue
        key = PROPERTY_ALIASES.get(prop.tag, prop.tag)
        value = prop.value
        if key in BOOLEAN_PROPERTIES and value in (GM_TRUE, GM_FALSE):
            value = "true" if value == GM_TRUE else "false"
        object_lines += format_value(key, value)
    if resource.shape_points is not None:
        physics_lines += format_value(
            SHAPE_POINTS_KEY, " ".join(resource.shape_points)
        )

    blocks.append(object_lines)
    if len(physics_lines) > 1:
        blocks.append(physics_lines)

    for event in resource.events:
        blocks.append([_event_header(event)])
        for action in event.actions:
            blocks.append(_action_lines(action))

    return "\n\n".join("\n".join(block) for block in blocks) + "\n"


def _event_header(event: EventBlock) -> str:
    category = EVENT_NAMES.get(event.event_type, str(event.event_type))
    if event.target is not None:
        return f"[event {category} {event.target}]"
    if event.number:
        return f"[event {category} {event.number}]"
    return f"[event {category}]"


def _match_template(action: ActionBlock) -> ActionTemplate | None:
    for template in ACTION_TEMPLATES.values():
        if (
            action.lib_id == template.lib_id
            and action.action_id == template.action_id
            and action.kind == template.kind
            and action.use_relative == template.use_relative
            and action.is_question == template.is_question
            and action.use_apply_to == template.use_apply_to
            and action.exe_type == template.exe_type
            and action.function_name == template.function_name
            and action.code_string == template.code_string
            and [(a.kind, a.tag) for a in action.arguments]
            == [(kind, tag) for _, kind, tag in template.slots]
        ):
            return template
    return None


def _action_lines(action: ActionBlock) -> list[str]:
    template = _match_template(action)
    if template is not None:
        lines = [f"[action {template.name}]"]
    else:
        lines = [f"[action {action.lib_id}:{action.action_id}]"]
        for key, (attr, _) in _GENERIC_ACTION_KEYS.items():
            lines += format_value(key, str(getattr(action, attr)))

    lines += format_value("applies_to", action.applies_to)
    if action.relative:
        lines += format_value("relative", str(action.relative))
    if action.is_not:
        lines += format_value("not", str(action.is_not))

    if template is not None:
        for (slot, _, _), argument in zip(template.slots, action.arguments):
            lines += format_value(slot, argument.value)
    else:
        for argument in action.arguments:
            lines += format_value(
                f"arg {argument.kind} {argument.tag}", argument.value
            )
    return lines


# =============================================================================
# Mirror -> native
# =============================================================================


def mirror_to_native(text: str, base: NativeResource) -> NativeResource:
    """Parse mirror *text* and merge it onto *base*.

    Properties missing from the text keep their *base* value; the events
    of the result are exactly the events written in the text.

    Raises:
        ParseError: On any malformed or unknown content.
    """
    return MirrorParser(text, base).parse()


@dataclass
class _EventDraft:
    line: int
    event_type: int
    number: int | None
    target: str | None
    actions: list[ActionBlock] = field(default_factory=list)

    def build(self) -> EventBlock:
        return EventBlock(
            event_type=self.event_type,
            number=self.number,
            target=self.target,
            actions=self.actions,
        )


@dataclass
class _ActionDraft:
    line: int
    label: str
    template: ActionTemplate | None
    lib_id: int = 1
    action_id: int = 603
    values: dict = field(default_factory=dict)
    slots: dict[str, str] = field(default_factory=dict)
    arguments: list[Argument] = field(default_factory=list)

    def build(self) -> ActionBlock:
        template = self.template
        if template is None:
            return ActionBlock(
                lib_id=self.lib_id,
                action_id=self.action_id,
                arguments=self.arguments,
                **self.values,
            )

        missing = [name for name, _, _ in template.slots if name not in self.slots]
        if missing:
            raise ParseError(
                self.line,
                f"action '{template.name}' expects {template.arity} "
                f"argument(s), got {len(self.slots)} "
                f"(missing {', '.join(missing)})",
            )
        return ActionBlock(
            lib_id=template.lib_id,
            action_id=template.action_id,
            kind=template.kind,
            use_relative=template.use_relative,
            is_question=template.is_question,
            use_apply_to=template.use_apply_to,
            exe_type=template.exe_type,
            function_name=template.function_name,
            code_string=template.code_string,
            arguments=[
                Argument(kind=kind, tag=tag, value=self.slots[name])
                for name, kind, tag in template.slots
            ],
            **self.values,
        )


class MirrorParser:
    """Line-oriented parser for mirror documents.

    Args:
        text: Mirror document text.
        base: Resource supplying every property the text does not set.
    """

    def __init__(self, text: str, base: NativeResource) -> None:
        self._lines = text.lstrip("\ufeff").replace("\r\n", "\n").split("\n")
        self._base = base
        self._pos = 0

        self._section: str | None = None
        self._seen_sections: set[str] = set()
        self._updates: dict[str, str] = {}
        self._shape_points: list[str] | None = None
        self._events: list[EventBlock] = []
        self._event: _EventDraft | None = None
        self._action: _ActionDraft | None = None

        self._physics_tags = {
            physics_key(prop.tag): prop.tag
            for prop in base.properties
            if is_physics_tag(prop.tag)
        }

    def parse(self) -> NativeResource:
        while self._pos < len(self._lines):
            lineno = self._pos + 1
            stripped = self._lines[self._pos].strip()
            self._pos += 1

            if not stripped or stripped.startswith("#"):
                continue

            if stripped.startswith("["):
                match = _SECTION.match(stripped)
                if match is None:
                    raise ParseError(
                        lineno, f"malformed section header {stripped!r}"
                    )
                self._open_section(
                    match["name"], (match["args"] or "").split(), lineno
                )
                continue

            match = _ASSIGN.match(stripped)
            if match is None:
                raise ParseError(
                    lineno, f"expected 'key = value', got {stripped!r}"
                )
            if match["tag"] is not None:
                value = self._read_fence(match["tag"], lineno)
            else:
                value = (match["value"] or "").strip()
            self._assign(match["key"], value, lineno)

        self._close_event()

        properties = [
            Property(tag=prop.tag, value=self._updates.get(prop.tag, prop.value))
            for prop in self._base.properties
        ]
        shape_points = (
            self._shape_points
            if self._shape_points is not None
            else self._base.shape_points
        )
        return NativeResource(
            properties=properties,
            events=self._events,
            shape_points=shape_points,
        )

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def _open_section(self, name: str, args: list[str], lineno: int) -> None:
        if name in ("object", "physics"):
            if args:
                raise ParseError(
                    lineno, f"section [{name}] takes no arguments"
                )
            if name in self._seen_sections:
                raise ParseError(lineno, f"duplicate section [{name}]")
            if self._event is not None:
                raise ParseError(
                    lineno, f"section [{name}] must come before any event"
                )
            self._seen_sections.add(name)
            self._section = name
        elif name == "event":
            self._close_event()
            self._event = self._parse_event_header(args, lineno)
            self._section = "event"
        elif name == "action":
            if self._event is None:
                raise ParseError(lineno, "action outside of an event")
            self._close_action()
            self._action = self._parse_action_header(args, lineno)
            self._section = "action"
        else:
            raise ParseError(lineno, f"unknown section [{name}]")

    def _parse_event_header(self, args: list[str], lineno: int) -> _EventDraft:
        if not args:
            raise ParseError(lineno, "event header needs a category")
        token, rest = args[0], args[1:]
        if token in EVENT_TYPES:
            event_type = EVENT_TYPES[token]
        elif token.isdigit():
            event_type = int(token)
        else:
            raise ParseError(lineno, f"unknown event '{token}'")

        if event_type == COLLISION_EVENT:
            if len(rest) != 1:
                raise ParseError(
                    lineno, "collision event needs exactly one object name"
                )
            return _EventDraft(lineno, event_type, None, rest[0])

        if len(rest) > 1:
            raise ParseError(
                lineno, f"event '{token}' takes at most one subtype"
            )
        number = 0
        if rest:
            try:
                number = int(rest[0])
            except ValueError:
                raise ParseError(
                    lineno,
                    f"event '{token}' subtype must be an integer, "
                    f"got {rest[0]!r}",
                ) from None
        return _EventDraft(lineno, event_type, number, None)

    def _parse_action_header(self, args: list[str], lineno: int) -> _ActionDraft:
        if len(args) != 1:
            raise ParseError(lineno, "action header needs exactly one kind")
        token = args[0]
        if token in ACTION_TEMPLATES:
            return _ActionDraft(lineno, token, ACTION_TEMPLATES[token])
        match = _GENERIC_ACTION.match(token)
        if match is None:
            raise ParseError(lineno, f"unknown action '{token}'")
        return _ActionDraft(
            lineno,
            token,
            None,
            lib_id=int(match["lib"]),
            action_id=int(match["id"]),
        )

    def _close_action(self) -> None:
        if self._action is not None and self._event is not None:
            self._event.actions.append(self._action.build())
        self._action = None

    def _close_event(self) -> None:
        self._close_action()
        if self._event is not None:
            self._events.append(self._event.build())
        self._event = None

    # ------------------------------------------------------------------
    # Assignments
    # ------------------------------------------------------------------

    def _read_fence(self, tag: str, lineno: int) -> str:
        body: list[str] = []
        while self._pos < len(self._lines):
            line = self._lines[self._pos]
            self._pos += 1
            if line.strip() == tag:
                return "\n".join(body)
            body.append(line)
        raise ParseError(lineno, f"block opened here is missing its closing '{tag}'")

    def _assign(self, key: str, value: str, lineno: int) -> None:
        if self._section == "object":
            self._assign_object(key, value, lineno)
        elif self._section == "physics":
            self._assign_physics(key, value, lineno)
        elif self._section == "action" and self._action is not None:
            self._assign_action(self._action, key, value, lineno)
        elif self._section == "event":
            raise ParseError(
                lineno, f"'{key}' is not allowed directly under an event"
            )
        else:
            raise ParseError(lineno, f"'{key}' is outside of any section")

    def _set_property(self, tag: str, key: str, value: str, lineno: int) -> None:
        if tag in self._updates:
            raise ParseError(lineno, f"duplicate key '{key}'")
        self._updates[tag] = value

    def _assign_object(self, key: str, value: str, lineno: int) -> None:
        tag = _ALIAS_TO_TAG.get(key, key)
        if is_physics_tag(tag) or not self._base.has_property(tag):
            raise ParseError(lineno, f"unknown object property '{key}'")

        if key in BOOLEAN_PROPERTIES:
            lowered = value.lower()
            if lowered == "true":
                value = GM_TRUE
            elif lowered == "false":
                value = GM_FALSE
            elif not re.fullmatch(r"-?\d+", value):
                raise ParseError(
                    lineno, f"'{key}' expects true or false, got {value!r}"
                )
        elif key in NUMERIC_PROPERTIES and not is_number(value):
            raise ParseError(
                lineno, f"'{key}' expects a number, got {value!r}"
            )
        self._set_property(tag, key, value, lineno)

    def _assign_physics(self, key: str, value: str, lineno: int) -> None:
        if key == SHAPE_POINTS_KEY:
            if self._shape_points is not None:
                raise ParseError(lineno, f"duplicate key '{key}'")
            self._shape_points = value.split()
            return
        tag = self._physics_tags.get(key)
        if tag is None:
            raise ParseError(lineno, f"unknown physics property '{key}'")
        self._set_property(tag, key, value, lineno)

    def _assign_action(
        self, draft: _ActionDraft, key: str, value: str, lineno: int
    ) -> None:
        template = draft.template

        if key in _COMMON_ACTION_KEYS:
            self._set_action_value(draft, key, _COMMON_ACTION_KEYS[key], value, lineno)
        elif template is not None:
            slot_names = [name for name, _, _ in template.slots]
            if key in slot_names:
                if key in draft.slots:
                    raise ParseError(lineno, f"duplicate key '{key}'")
                draft.slots[key] = value
            elif key == "arg" or key.startswith("arg "):
                raise ParseError(
                    lineno,
                    f"action '{template.name}' takes {template.arity} "
                    f"argument(s): {', '.join(slot_names) or 'none'}",
                )
            else:
                raise ParseError(
                    lineno, f"unknown key '{key}' for action '{draft.label}'"
                )
        elif key in _GENERIC_ACTION_KEYS:
            self._set_action_value(draft, key, _GENERIC_ACTION_KEYS[key], value, lineno)
        elif key.startswith("arg "):
            parts = key.split()
            if len(parts) != 3 or not re.fullmatch(r"-?\d+", parts[1]):
                raise ParseError(
                    lineno, f"argument must read 'arg <kind> <tag>', got {key!r}"
                )
            draft.arguments.append(
                Argument(kind=int(parts[1]), tag=parts[2], value=value)
            )
        else:
            raise ParseError(
                lineno, f"unknown key '{key}' for action '{draft.label}'"
            )

    @staticmethod
    def _set_action_value(
        draft: _ActionDraft,
        key: str,
        field: tuple[str, bool],
        value: str,
        lineno: int,
    ) -> None:
        attr, is_int = field
        if attr in draft.values:
            raise ParseError(lineno, f"duplicate key '{key}'")
        if is_int:
            try:
                draft.values[attr] = int(value)
            except ValueError:
                raise ParseError(
                    lineno, f"'{key}' must be an integer, got {value!r}"
                ) from None
        else:
            draft.values[attr] = value
