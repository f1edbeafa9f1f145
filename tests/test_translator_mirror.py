"""Tests for the mirror text format.

Covers:
- native -> mirror -> native is the identity on the resource
- Translation is deterministic
- Named action templates vs spelled-out actions
- Fenced values, including values that contain the default fence tag
- Merge semantics: omitted properties keep their base value, events are replaced
- Every malformed input raises ParseError with the offending line
"""

from __future__ import annotations

import pytest

from gmx_mirror.errors import ParseError
from gmx_mirror.translator.common import fence_tag, format_value, physics_key
from gmx_mirror.translator.mirror import mirror_to_native, native_to_mirror
from gmx_mirror.translator.models import ActionBlock, Argument, EventBlock
from gmx_mirror.translator.native import default_resource, parse_native


@pytest.fixture
def enemy(enemy_bytes):
    return parse_native(enemy_bytes)


# ---------------------------------------------------------------------------
# Round trip
# ---------------------------------------------------------------------------


class TestRoundTrip:
    """native_to_mirror() followed by mirror_to_native()."""

    def test_round_trip_is_identity(self, enemy):
        text = native_to_mirror(enemy)
        assert mirror_to_native(text, enemy) == enemy

    def test_round_trip_onto_default_base(self):
        base = default_resource()
        assert mirror_to_native(native_to_mirror(base), base) == base

    def test_translation_is_deterministic(self, enemy_bytes):
        first = native_to_mirror(parse_native(enemy_bytes))
        second = native_to_mirror(parse_native(enemy_bytes))
        assert first == second

    def test_mirror_text_is_stable(self, enemy):
        text = native_to_mirror(enemy)
        assert native_to_mirror(mirror_to_native(text, enemy)) == text

    def test_awkward_values_survive(self, enemy):
        odd = ActionBlock(
            arguments=[Argument(kind=1, value="  leading\nEND\n\ntrailing  ")]
        )
        resource = enemy.model_copy(
            update={"events": [EventBlock(event_type=3, actions=[odd])]}
        )
        assert mirror_to_native(native_to_mirror(resource), resource) == resource

    def test_crlf_text_is_accepted(self, enemy):
        text = native_to_mirror(enemy).replace("\n", "\r\n")
        assert mirror_to_native(text, enemy) == enemy


# ---------------------------------------------------------------------------
# Emitter
# ---------------------------------------------------------------------------


class TestNativeToMirror:
    """Layout of the emitted text."""

    def test_object_section_uses_aliases(self, enemy):
        text = native_to_mirror(enemy)
        assert text.startswith("[object]\nsprite = spr_enemy\nsolid = false\n")
        assert "visible = true" in text
        assert "parent = obj_actor" in text
        assert "mask = <undefined>" in text

    def test_physics_section(self, enemy):
        text = native_to_mirror(enemy)
        assert "[physics]\nenabled = 0\n" in text
        assert "linear_damping = 0.1" in text
        assert "shape_points = 0,0 16,16" in text

    def test_event_headers(self, enemy):
        text = native_to_mirror(enemy)
        assert "[event create]" in text
        assert "[event alarm 1]" in text
        assert "[event collision obj_wall]" in text

    def test_code_action_uses_template(self, enemy):
        text = native_to_mirror(enemy)
        assert "[action code]\napplies_to = self\ncode <<<END\nhp = 3;\nspeed = 2;\nEND" in text

    def test_inherited_action_has_no_arguments(self, enemy):
        text = native_to_mirror(enemy)
        assert "[action inherited]\napplies_to = self\n" in text

    def test_unknown_action_is_spelled_out(self, enemy):
        text = native_to_mirror(enemy)
        assert "[action 1:113]" in text
        assert "function = action_bounce" in text
        assert "arg 3 string = 0" in text
        assert "arg 3 string = 1" in text

    def test_ends_with_newline(self, enemy):
        assert native_to_mirror(enemy).endswith("\n")

    def test_no_physics_section_without_physics(self):
        resource = parse_native(b"<object><solid>-1</solid><events/></object>")
        assert native_to_mirror(resource) == "[object]\nsolid = true\n"


class TestFenceHelpers:
    """Tests for fence_tag() / format_value()."""

    def test_plain_value(self):
        assert format_value("depth", "0") == ["depth = 0"]

    def test_empty_value(self):
        assert format_value("mask", "") == ["mask ="]

    def test_multiline_value_is_fenced(self):
        assert format_value("code", "a\nb") == ["code <<<END", "a", "b", "END"]

    def test_fence_tag_avoids_content(self):
        assert fence_tag("END\nEND1") == "END2"

    def test_physics_key(self):
        assert physics_key("PhysicsObject") == "enabled"
        assert physics_key("PhysicsObjectAngularDamping") == "angular_damping"


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------


class TestMirrorToNative:
    """Parsing edited mirror text onto a base resource."""

    def test_omitted_properties_keep_base(self, enemy):
        result = mirror_to_native("[object]\ndepth = 5\n", enemy)
        assert result.get("depth") == "5"
        assert result.get("spriteName") == "spr_enemy"
        assert result.shape_points == enemy.shape_points

    def test_events_are_replaced(self, enemy):
        result = mirror_to_native("[object]\n", enemy)
        assert result.events == []

    def test_property_order_follows_base(self, enemy):
        result = mirror_to_native("[object]\nmask = spr_mask\nsprite = spr_x\n", enemy)
        assert [p.tag for p in result.properties] == [p.tag for p in enemy.properties]

    def test_boolean_words(self, enemy):
        result = mirror_to_native("[object]\nsolid = TRUE\nvisible = false\n", enemy)
        assert result.get("solid") == "-1"
        assert result.get("visible") == "0"

    def test_comments_and_blank_lines_ignored(self, enemy):
        text = "# enemy\n\n[object]\n# hp lives in create\ndepth = 1\n"
        assert mirror_to_native(text, enemy).get("depth") == "1"

    def test_shape_points_replaced(self, enemy):
        result = mirror_to_native("[physics]\nshape_points = 1,1 2,2 3,3\n", enemy)
        assert result.shape_points == ["1,1", "2,2", "3,3"]

    def test_new_code_event(self):
        text = (
            "[event step]\n\n"
            "[action code]\n"
            "code <<<END\n"
            "x += 1;\n"
            "END\n"
        )
        result = mirror_to_native(text, default_resource())
        event = result.events[0]
        assert event.event_type == 3
        assert event.number == 0
        action = event.actions[0]
        assert (action.lib_id, action.action_id, action.kind) == (1, 603, 7)
        assert action.applies_to == "self"
        assert action.arguments == [Argument(kind=1, tag="string", value="x += 1;")]

    def test_numeric_event_token(self):
        result = mirror_to_native("[event 7 10]\n", default_resource())
        assert (result.events[0].event_type, result.events[0].number) == (7, 10)

    def test_actions_keep_order(self):
        text = (
            "[event create]\n"
            "[action comment]\ntext = first\n"
            "[action code]\ncode = second\n"
            "[action inherited]\n"
        )
        actions = mirror_to_native(text, default_resource()).events[0].actions
        assert [a.action_id for a in actions] == [203, 603, 604]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestMirrorParseErrors:
    """Everything malformed raises ParseError."""

    @pytest.mark.parametrize(
        ("text", "line", "fragment"),
        [
            ("depth = 1\n", 1, "outside of any section"),
            ("[object]\n[object]\n", 2, "duplicate section"),
            ("[object]\ndepth = 1\ndepth = 2\n", 3, "duplicate key"),
            ("[colour]\n", 1, "unknown section"),
            ("[object]\nhealth = 3\n", 2, "unknown object property"),
            ("[object]\ndepth = deep\n", 2, "expects a number"),
            ("[object]\nsolid = maybe\n", 2, "true or false"),
            ("[physics]\nmass = 3\n", 2, "unknown physics property"),
            ("[event spawn]\n", 1, "unknown event"),
            ("[event collision]\n", 1, "collision event"),
            ("[event alarm one]\n", 1, "must be an integer"),
            ("[action code]\n", 1, "action outside of an event"),
            ("[event create]\ncode = x\n", 2, "directly under an event"),
            ("[event create]\n[action teleport]\n", 2, "unknown action"),
            ("[event create]\n[action code]\ncode <<<END\nx = 1;\n", 3, "missing its closing"),
            ("[event create]\n[action code]\napplies_to = self\n", 2, "expects 1 argument"),
            ("[event create]\n[action inherited]\narg 1 string = x\n", 3, "takes 0 argument"),
            ("[event create]\n[action 1:113]\nkind = zero\n", 3, "must be an integer"),
            ("[event create]\n[action 1:113]\nspeed = 3\n", 3, "unknown key"),
            ("[object\n", 1, "malformed section header"),
            ("[object]\n= 3\n", 2, "expected 'key = value'"),
        ],
    )
    def test_parse_error(self, enemy, text, line, fragment):
        with pytest.raises(ParseError) as exc_info:
            mirror_to_native(text, enemy)
        assert exc_info.value.line == line
        assert fragment in str(exc_info.value)

    def test_physics_key_missing_from_base(self):
        base = parse_native(b"<object><solid>0</solid><events/></object>")
        with pytest.raises(ParseError, match="unknown physics property"):
            mirror_to_native("[physics]\nenabled = 1\n", base)
