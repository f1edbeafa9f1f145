"""Lossless translation between native GameMaker XML and mirror text."""

from .manifest import (
    ManifestEntry,
    NativeManifest,
    append_manifest_entry,
    parse_manifest,
    render_manifest,
)
from .mirror import MirrorParser, mirror_to_native, native_to_mirror
from .models import (
    ActionBlock,
    Argument,
    ArgumentType,
    EventBlock,
    NativeResource,
    Property,
    ResourceKind,
)
from .native import default_resource, parse_native, render_native

__all__ = [
    "ActionBlock",
    "Argument",
    "ArgumentType",
    "EventBlock",
    "ManifestEntry",
    "MirrorParser",
    "NativeManifest",
    "NativeResource",
    "Property",
    "ResourceKind",
    "append_manifest_entry",
    "default_resource",
    "mirror_to_native",
    "native_to_mirror",
    "parse_manifest",
    "parse_native",
    "render_manifest",
    "render_native",
]
