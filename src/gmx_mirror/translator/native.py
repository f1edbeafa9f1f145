"""GameMaker ``*.object.gmx`` XML reading and writing (lxml)."""

from __future__ import annotations

from lxml import etree

from ..errors import ParseError
from .common import SHAPE_POINTS_TAG, is_physics_tag
from .models import ActionBlock, Argument, EventBlock, NativeResource, Property

GMX_HEADER = (
    "This Document is generated by GameMaker, if you edit it by hand "
    "then you do so at your own risk!"
)

_INDENT = "  "

# <action> child tag -> (ActionBlock attribute, is integer)
_ACTION_FIELDS: tuple[tuple[str, str, bool], ...] = (
    ("libid", "lib_id", True),
    ("id", "action_id", True),
    ("kind", "kind", True),
    ("userelative", "use_relative", True),
    ("isquestion", "is_question", True),
    ("useapplyto", "use_apply_to", True),
    ("exetype", "exe_type", True),
    ("functionname", "function_name", False),
    ("codestring", "code_string", False),
    ("whoName", "applies_to", False),
    ("relative", "relative", True),
    ("isnot", "is_not", True),
)

# Properties of a freshly created GameMaker: Studio object, in the order
# the IDE writes them.
_DEFAULT_PROPERTIES: tuple[tuple[str, str], ...] = (
    ("spriteName", "<undefined>"),
    ("solid", "0"),
    ("visible", "-1"),
    ("depth", "0"),
    ("persistent", "0"),
    ("parentName", "<undefined>"),
    ("maskName", "<undefined>"),
    ("PhysicsObject", "0"),
    ("PhysicsObjectSensor", "0"),
    ("PhysicsObjectShape", "0"),
    ("PhysicsObjectDensity", "0.5"),
    ("PhysicsObjectRestitution", "0.1"),
    ("PhysicsObjectGroup", "0"),
    ("PhysicsObjectLinearDamping", "0.1"),
    ("PhysicsObjectAngularDamping", "0.1"),
    ("PhysicsObjectFriction", "0.2"),
    ("PhysicsObjectAwake", "-1"),
    ("PhysicsObjectKinematic", "0"),
)


def default_resource() -> NativeResource:
    """Return the skeleton of a new, empty GameMaker object."""
    return NativeResource(
        properties=[Property(tag=t, value=v) for t, v in _DEFAULT_PROPERTIES],
        events=[],
        shape_points=[],
    )


# =============================================================================
# Parsing
# =============================================================================


def parse_native(data: bytes) -> NativeResource:
    """Parse the bytes of an ``*.object.gmx`` file.

    Args:
        data: Raw file content.

    Returns:
        The parsed resource.

    Raises:
        ParseError: If the XML is malformed or is not an ``<object>``.
    """
    parser = etree.XMLParser(resolve_entities=False)
    try:
        root = etree.fromstring(data, parser=parser)
    except etree.XMLSyntaxError as exc:
        raise ParseError(exc.lineno or 0, exc.msg) from exc

    if root.tag != "object":
        raise ParseError(
            root.sourceline or 0,
            f"expected <object> root element, found <{root.tag}>",
        )

    properties: list[Property] = []
    events: list[EventBlock] = []
    shape_points: list[str] | None = None

    for child in _elements(root):
        if child.tag == "events":
            events = [_parse_event(el) for el in _elements(child)]
        elif child.tag == SHAPE_POINTS_TAG:
            shape_points = [point.text or "" for point in _elements(child)]
        elif len(child):
            raise ParseError(
                child.sourceline or 0,
                f"unexpected nested content in <{child.tag}>",
            )
        else:
            properties.append(Property(tag=child.tag, value=child.text or ""))

    return NativeResource(
        properties=properties, events=events, shape_points=shape_points
    )


def _elements(parent: etree._Element) -> list[etree._Element]:
    """Child elements of *parent*, skipping comments and PIs."""
    return [child for child in parent if isinstance(child.tag, str)]


def _parse_int(text: str | None, element: etree._Element, what: str) -> int:
    try:
        return int((text or "0").strip())
    except ValueError:
        raise ParseError(
            element.sourceline or 0,
            f"{what} must be an integer, got {text!r}",
        ) from None


def _parse_event(element: etree._Element) -> EventBlock:
    if element.tag != "event":
        raise ParseError(
            element.sourceline or 0,
            f"expected <event> inside <events>, found <{element.tag}>",
        )
    event_type = _parse_int(element.get("eventtype"), element, "eventtype")
    target = element.get("ename")
    number: int | None = None
    if element.get("enumb") is not None or target is None:
        number = _parse_int(element.get("enumb"), element, "enumb")

    actions = [
        _parse_action(child)
        for child in _elements(element)
        if child.tag == "action"
    ]
    return EventBlock(
        event_type=event_type, number=number, target=target, actions=actions
    )


def _parse_action(element: etree._Element) -> ActionBlock:
    values: dict = {}
    arguments: list[Argument] = []
    children = {child.tag: child for child in _elements(element)}

    for xml_tag, attr, is_int in _ACTION_FIELDS:
        child = children.get(xml_tag)
        if child is None:
            continue
        if is_int:
            values[attr] = _parse_int(child.text, child, xml_tag)
        else:
            values[attr] = child.text or ""

    args_el = children.get("arguments")
    if args_el is not None:
        for arg_el in _elements(args_el):
            arguments.append(_parse_argument(arg_el))

    return ActionBlock(**values, arguments=arguments)


def _parse_argument(element: etree._Element) -> Argument:
    kind = 0
    tag = "string"
    value = ""
    for child in _elements(element):
        if child.tag == "kind":
            kind = _parse_int(child.text, child, "argument kind")
        else:
            tag = child.tag
            value = child.text or ""
    return Argument(kind=kind, tag=tag, value=value)


# =============================================================================
# Rendering
# =============================================================================


def render_native(resource: NativeResource) -> bytes:
    """Serialize *resource* as ``*.object.gmx`` bytes.

    Properties are written in order; ``<events>`` goes right before the
    first ``Physics*`` property (or last if there is none) and
    ``<PhysicsShapePoints>`` closes the document, as the IDE does.
    """
    root = etree.Element("object")
    events_written = False

    for prop in resource.properties:
        if not events_written and is_physics_tag(prop.tag):
            _render_events(root, resource.events)
            events_written = True
        _leaf(root, prop.tag, prop.value)

    if not events_written:
        _render_events(root, resource.events)

    if resource.shape_points is not None:
        points_el = etree.SubElement(root, SHAPE_POINTS_TAG)
        for point in resource.shape_points:
            _leaf(points_el, "point", point)

    root.addprevious(etree.Comment(GMX_HEADER))
    etree.indent(root, space=_INDENT)
    return etree.tostring(
        root.getroottree(), pretty_print=True, encoding="utf-8"
    )


def _leaf(parent: etree._Element, tag: str, text: str) -> etree._Element:
    element = etree.SubElement(parent, tag)
    # "" (not None) so lxml writes <tag></tag> like the IDE.
    element.text = text
    return element


def _render_events(root: etree._Element, events: list[EventBlock]) -> None:
    events_el = etree.SubElement(root, "events")
    for event in events:
        attrs = {"eventtype": str(event.event_type)}
        if event.target is not None:
            attrs["ename"] = event.target
        if event.number is not None:
            attrs["enumb"] = str(event.number)
        elif event.target is None:
            attrs["enumb"] = "0"
        event_el = etree.SubElement(events_el, "event", attrs)
        for action in event.actions:
            _render_action(event_el, action)


def _render_action(event_el: etree._Element, action: ActionBlock) -> None:
    action_el = etree.SubElement(event_el, "action")
    for xml_tag, attr, _ in _ACTION_FIELDS:
        _leaf(action_el, xml_tag, str(getattr(action, attr)))
    if action.arguments:
        args_el = etree.SubElement(action_el, "arguments")
        for argument in action.arguments:
            arg_el = etree.SubElement(args_el, "argument")
            _leaf(arg_el, "kind", str(argument.kind))
            _leaf(arg_el, argument.tag, argument.value)
