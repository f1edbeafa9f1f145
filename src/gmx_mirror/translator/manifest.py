"""GameMaker ``*.project.gmx`` manifest handling (lxml).

The manifest is edited in place by the IDE as well, so everything outside
the element being appended has to survive a parse/render cycle
byte-for-byte: the XML declaration, the header comment, CRLF line
endings, and the indentation of untouched entries.
"""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, replace

from lxml import etree

from ..errors import ParseError, UnknownGroupError
from .models import ResourceKind

_INDENT_STEP = "  "
_BOM = b"\xef\xbb\xbf"

# Everything before the root element: declaration, comments, whitespace.
_PROLOG = re.compile(rb"^(?:\s|<\?.*?\?>|<!--.*?-->|<!DOCTYPE[^>]*>)*", re.S)


@dataclass(frozen=True)
class ManifestEntry:
    """One resource reference inside a manifest group.

    Attributes:
        name: Resource name without folder prefix or script extension.
        kind: Element tag (``object``, ``script``, ...).
        path: Raw element text, e.g. ``objects\\obj_enemy``.
    """

    name: str
    kind: str
    path: str


@dataclass(frozen=True)
class NativeManifest:
    """A parsed project manifest.

    ``root`` is never mutated once the manifest is built; operations that
    change the tree return a new ``NativeManifest`` holding a copy.
    """

    root: etree._Element
    prolog: bytes = b""
    suffix: bytes = b"\n"
    crlf: bool = False

    def groups(self) -> list[str]:
        """Names of every group (``name`` attribute) in document order."""
        return [
            el.get("name")
            for el in self.root.iter()
            if isinstance(el.tag, str) and el.get("name") is not None
        ]

    def find_group(self, group: str) -> etree._Element:
        """Return the first element whose ``name`` is *group*.

        Raises:
            UnknownGroupError: If no such element exists.
        """
        for el in self.root.iter():
            if isinstance(el.tag, str) and el.get("name") == group:
                return el
        raise UnknownGroupError(group)

    def entries(self, group: str) -> list[ManifestEntry]:
        """Resource entries anywhere below *group*, in document order."""
        group_el = self.find_group(group)
        return [
            _entry(el)
            for el in group_el.iter()
            if el is not group_el
            and isinstance(el.tag, str)
            and len(el) == 0
            and el.get("name") is None
        ]

    def contains(self, group: str, name: str, kind: ResourceKind) -> bool:
        return any(
            entry.kind == kind.value and entry.name == name
            for entry in self.entries(group)
        )


def _entry(element: etree._Element) -> ManifestEntry:
    text = (element.text or "").strip()
    name = re.split(r"[\\/]", text)[-1]
    if element.tag == ResourceKind.SCRIPT.value and "." in name:
        name = name.rsplit(".", 1)[0]
    return ManifestEntry(name=name, kind=element.tag, path=text)


# =============================================================================
# Parsing and rendering
# =============================================================================


def parse_manifest(data: bytes) -> NativeManifest:
    """Parse the bytes of a ``*.project.gmx`` file.

    Raises:
        ParseError: If the document is not well-formed XML.
    """
    parser = etree.XMLParser(resolve_entities=False, remove_blank_text=False)
    try:
        root = etree.fromstring(data, parser=parser)
    except etree.XMLSyntaxError as exc:
        raise ParseError(exc.lineno or 0, exc.msg) from exc

    body = data[len(_BOM):] if data.startswith(_BOM) else data
    prolog = data[: len(data) - len(body)] + _PROLOG.match(body).group(0)

    closing = f"</{root.tag}>".encode()
    end = body.rfind(closing)
    if end >= 0:
        suffix = body[end + len(closing):]
    else:
        suffix = body[len(body.rstrip()):]

    return NativeManifest(
        root=root, prolog=prolog, suffix=suffix, crlf=b"\r\n" in data
    )


def render_manifest(manifest: NativeManifest) -> bytes:
    """Serialize *manifest*, restoring its prolog, suffix and line endings."""
    text = etree.tostring(
        manifest.root, encoding="utf-8", xml_declaration=False, with_tail=False
    )
    if manifest.crlf:
        text = text.replace(b"\r\n", b"\n").replace(b"\n", b"\r\n")
    return manifest.prolog + text + manifest.suffix


# =============================================================================
# Editing
# =============================================================================


def append_manifest_entry(
    manifest: NativeManifest,
    group: str,
    name: str,
    kind: ResourceKind,
    script_ext: str = "gml",
) -> NativeManifest:
    """Return a manifest with *name* appended to *group*.

    The new element goes after the group's last direct child and copies
    its siblings' indentation.  When *name* is already listed under the
    group, *manifest* itself is returned.

    Args:
        manifest: Manifest to extend; left untouched.
        group: ``name`` attribute of the target group, e.g. ``objects``.
        name: Resource name, e.g. ``obj_enemy``.
        kind: Kind of resource; decides the element tag and path form.
        script_ext: Extension appended to script paths.

    Raises:
        UnknownGroupError: If *group* does not exist.
    """
    manifest.find_group(group)
    if manifest.contains(group, name, kind):
        return manifest

    root = copy.deepcopy(manifest.root)
    updated = replace(manifest, root=root)
    group_el = updated.find_group(group)

    path = f"{kind.group}\\{name}"
    if kind is ResourceKind.SCRIPT:
        path = f"{path}.{script_ext}"

    entry = etree.Element(kind.value)
    entry.text = path

    children = list(group_el)
    if children:
        last = children[-1]
        closing = last.tail
        sibling_indent = children[-2].tail if len(children) > 1 else group_el.text
        last.tail = sibling_indent if sibling_indent is not None else "\n"
        entry.tail = closing
    else:
        own = _indent_of(group_el)
        group_el.text = own + _INDENT_STEP
        entry.tail = own
    group_el.append(entry)
    return updated


def _indent_of(element: etree._Element) -> str:
    """Whitespace preceding *element* (newline included)."""
    previous = element.getprevious()
    if previous is not None:
        text = previous.tail
    else:
        parent = element.getparent()
        text = parent.text if parent is not None else None
    if not text or text.strip():
        return "\n"
    return text
