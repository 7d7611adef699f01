"""In-memory model of an MSBuild project file (.csproj/.fsproj/.vbproj).

Wraps :mod:`xml.etree.ElementTree` with the few concepts the modifier needs:
top-level ``PropertyGroup`` and ``ItemGroup`` sections, the properties and
items they hold, and per-item metadata. Document order is kept for groups,
items and metadata; every lookup is a linear scan where the first
case-insensitive match wins.

Round-tripping keeps the parts of the file that were not edited: the XML
prolog (declaration, leading comments, BOM), comments inside the project,
the legacy MSBuild default namespace, the root start tag as written (attribute
order and quoting) while its attributes are unchanged, and CRLF line endings.
New elements are indented with the unit the file already uses.
"""

from __future__ import annotations

import codecs
import re
import xml.etree.ElementTree as ET
from pathlib import Path

from dotnet_template.core.exceptions import (
    ProjectFileNotFoundError,
    ProjectFileParseError,
    ProjectFileSaveError,
)

MSBUILD_NAMESPACE = "http://schemas.microsoft.com/developer/msbuild/2003"
DEFAULT_SDK = "Microsoft.NET.Sdk"

ET.register_namespace("", MSBUILD_NAMESPACE)

PROPERTY_GROUP = "PropertyGroup"
ITEM_GROUP = "ItemGroup"

# Item attributes that are not metadata
_ITEM_ATTRIBUTES = frozenset(
    {
        "include",
        "exclude",
        "update",
        "remove",
        "condition",
        "label",
        "keepmetadata",
        "removemetadata",
        "keepduplicates",
        "matchonmetadata",
        "matchonmetadataoptions",
    }
)

_DEFAULT_INDENT = "  "
_INDENT_PATTERN = re.compile(r"\n([ \t]+)$")


def _local_name(tag) -> str:
    """Tag name without namespace; empty for comments and processing instructions."""
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def _same_name(left: str, right: str) -> bool:
    return left.lower() == right.lower()


def _split_prolog(text: str) -> str:
    """Return everything in *text* before the root element's start tag."""
    pos = 0
    while True:
        start = text.find("<", pos)
        if start == -1:
            return ""
        if text.startswith("<?", start):
            end, width = text.find("?>", start), 2
        elif text.startswith("<!--", start):
            end, width = text.find("-->", start), 3
        elif text.startswith("<!", start):
            end, width = text.find(">", start), 1
        else:
            return text[:start]
        if end == -1:
            return ""
        pos = end + width


def _start_tag(text: str, start: int) -> str:
    """Return the start tag opening at ``text[start]``; quoted ``>`` do not end it."""
    quote = None
    for pos in range(start, len(text)):
        char = text[pos]
        if quote:
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == ">":
            return text[start:pos + 1]
    return ""


class _Node:
    """An element of a :class:`ProjectRootElement`."""

    def __init__(self, element: ET.Element, document: ProjectRootElement):
        self.element = element
        self.document = document

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _Node) and other.element is self.element

    def __hash__(self) -> int:
        return id(self.element)


class ProjectProperty(_Node):
    """A property such as ``<LangVersion>latest</LangVersion>``."""

    @property
    def name(self) -> str:
        return _local_name(self.element.tag)

    @property
    def value(self) -> str:
        return self.element.text or ""

    @value.setter
    def value(self, value: str) -> None:
        self.element.text = value

    def __repr__(self) -> str:
        return f"ProjectProperty({self.name!r}, {self.value!r})"


class ProjectPropertyGroup(_Node):
    """A ``<PropertyGroup>`` section."""

    @property
    def condition(self) -> str:
        return self.element.get("Condition", "")

    @property
    def properties(self) -> list[ProjectProperty]:
        return [
            ProjectProperty(child, self.document)
            for child in self.element
            if isinstance(child.tag, str)
        ]

    def find_property(self, name: str) -> ProjectProperty | None:
        for prop in self.properties:
            if _same_name(prop.name, name):
                return prop
        return None

    def add_property(self, name: str, value: str) -> ProjectProperty:
        child = self.document.new_element(name)
        child.text = value
        self.document.insert_child(self.element, len(self.element), child, depth=1)
        return ProjectProperty(child, self.document)


class ProjectItem(_Node):
    """An item such as ``<Reference Include="Lib">`` with its metadata.

    Metadata can be written as child elements or as attributes of the item
    element; both are read, and updates keep whichever form is already used.
    """

    @property
    def item_type(self) -> str:
        return _local_name(self.element.tag)

    @property
    def include(self) -> str:
        return self.element.get("Include", "")

    @property
    def metadata(self) -> list[tuple[str, str]]:
        """Ordered ``(key, value)`` pairs, attribute metadata first."""
        pairs = [
            (name, value)
            for name, value in self.element.attrib.items()
            if name.lower() not in _ITEM_ATTRIBUTES
        ]
        pairs.extend(
            (_local_name(child.tag), child.text or "")
            for child in self.element
            if isinstance(child.tag, str)
        )
        return pairs

    def _find_metadata_attribute(self, key: str) -> str | None:
        for name in self.element.attrib:
            if name.lower() not in _ITEM_ATTRIBUTES and _same_name(name, key):
                return name
        return None

    def _find_metadata_element(self, key: str) -> ET.Element | None:
        for child in self.element:
            if isinstance(child.tag, str) and _same_name(_local_name(child.tag), key):
                return child
        return None

    def get_metadata(self, key: str) -> str | None:
        attribute = self._find_metadata_attribute(key)
        if attribute is not None:
            return self.element.get(attribute)
        child = self._find_metadata_element(key)
        if child is not None:
            return child.text or ""
        return None

    def add_metadata(self, key: str, value: str, as_attribute: bool = False) -> None:
        """Append a metadata entry without checking for an existing one."""
        if as_attribute:
            self.element.set(key, value)
            return
        child = self.document.new_element(key)
        child.text = value
        self.document.insert_child(self.element, len(self.element), child, depth=2)

    def set_metadata(self, key: str, value: str) -> bool:
        """Update or insert *key*; returns ``True`` when the item changed."""
        attribute = self._find_metadata_attribute(key)
        if attribute is not None:
            if self.element.get(attribute) == value:
                return False
            self.element.set(attribute, value)
            return True

        child = self._find_metadata_element(key)
        if child is not None:
            if (child.text or "") == value:
                return False
            child.text = value
            return True

        self.add_metadata(key, value)
        return True

    def __repr__(self) -> str:
        return f"ProjectItem({self.item_type!r}, {self.include!r})"


class ProjectItemGroup(_Node):
    """An ``<ItemGroup>`` section."""

    @property
    def condition(self) -> str:
        return self.element.get("Condition", "")

    @property
    def items(self) -> list[ProjectItem]:
        return [
            ProjectItem(child, self.document)
            for child in self.element
            if isinstance(child.tag, str)
        ]

    def has_item_type(self, item_type: str) -> bool:
        return any(_same_name(item.item_type, item_type) for item in self.items)

    def find_item(self, item_type: str, include: str) -> ProjectItem | None:
        for item in self.items:
            if _same_name(item.item_type, item_type) and _same_name(item.include, include):
                return item
        return None

    def add_item(self, item_type: str, include: str) -> ProjectItem:
        child = self.document.new_element(item_type, {"Include": include})
        self.document.insert_child(self.element, len(self.element), child, depth=1)
        return ProjectItem(child, self.document)


class ProjectRootElement:
    """A loaded project file.

    Use :meth:`open` to load an existing file or :meth:`create` for a new,
    unsaved SDK-style project. Nothing touches the disk until :meth:`save`.
    """

    def __init__(
        self,
        path: str | Path,
        root: ET.Element,
        prolog: str = "",
        trailer: str = "\n",
        byte_order_mark: bool = False,
        crlf: bool = False,
        root_start_tag: str = "",
    ):
        self.path = Path(path)
        self.root = root
        self._prolog = prolog
        self._trailer = trailer
        self._byte_order_mark = byte_order_mark
        self._crlf = crlf
        self._root_start_tag = root_start_tag.replace("\r\n", "\n")
        self._root_snapshot = (root.tag, dict(root.attrib))

        tag = root.tag if isinstance(root.tag, str) else ""
        self.namespace = tag[1:].split("}", 1)[0] if tag.startswith("{") else ""

        match = _INDENT_PATTERN.search(root.text or "")
        self.indent = match.group(1) if match and len(root) else _DEFAULT_INDENT
        blank_lines = "\n\n" in (root.text or "") or any(
            "\n\n" in (child.tail or "") for child in root
        )
        self._group_separator = "\n\n" if blank_lines else "\n"

    # ------------------------------------------------------------------
    # Loading and saving
    # ------------------------------------------------------------------

    @classmethod
    def open(cls, path: str | Path) -> ProjectRootElement:
        """Load and parse a project file.

        Raises:
            ProjectFileNotFoundError: If *path* is not an existing file.
            ProjectFileParseError: If the content is not an MSBuild project.
        """
        file_path = Path(path)
        if not file_path.is_file():
            raise ProjectFileNotFoundError(str(file_path))

        raw = file_path.read_bytes()
        byte_order_mark = raw.startswith(codecs.BOM_UTF8)
        try:
            text = raw.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ProjectFileParseError(str(file_path), f"not UTF-8 encoded ({e})") from e

        parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True, insert_pis=True))
        try:
            parser.feed(text)
            root = parser.close()
        except ET.ParseError as e:
            raise ProjectFileParseError(str(file_path), str(e)) from e

        if _local_name(root.tag) != "Project":
            raise ProjectFileParseError(
                str(file_path), f"root element is <{_local_name(root.tag)}>, expected <Project>"
            )

        prolog = _split_prolog(text)
        return cls(
            file_path,
            root,
            prolog=prolog,
            trailer=text[len(text.rstrip()):],
            byte_order_mark=byte_order_mark,
            crlf="\r\n" in text,
            root_start_tag=_start_tag(text, len(prolog)),
        )

    @classmethod
    def create(cls, path: str | Path, sdk: str | None = DEFAULT_SDK) -> ProjectRootElement:
        """Create an empty project; call :meth:`save` to write it."""
        root = ET.Element("Project", {"Sdk": sdk} if sdk else {})
        return cls(path, root)

    def to_xml(self) -> str:
        """Serialise the document, prolog included."""
        body = self._restore_root_start_tag(ET.tostring(self.root, encoding="unicode"))
        body += self._trailer.replace("\r\n", "\n")
        if self._crlf:
            body = body.replace("\n", "\r\n")
        return self._prolog + body

    def _restore_root_start_tag(self, body: str) -> str:
        # ElementTree writes xmlns first and re-quotes attributes
        if not self._root_start_tag or (self.root.tag, dict(self.root.attrib)) != self._root_snapshot:
            return body
        written = _start_tag(body, 0)
        if written.endswith("/>") != self._root_start_tag.endswith("/>"):
            return body
        return self._root_start_tag + body[len(written):]

    def save(self, path: str | Path | None = None) -> Path:
        """Write the document to *path* (defaults to the path it was loaded from).

        Raises:
            ProjectFileSaveError: If the file cannot be written.
        """
        target = Path(path) if path is not None else self.path
        content = self.to_xml().encode("utf-8")
        if self._byte_order_mark:
            content = codecs.BOM_UTF8 + content
        try:
            target.write_bytes(content)
        except OSError as e:
            raise ProjectFileSaveError(str(target), str(e)) from e
        return target

    # ------------------------------------------------------------------
    # Element helpers
    # ------------------------------------------------------------------

    def new_element(self, name: str, attrib: dict[str, str] | None = None) -> ET.Element:
        """Create an element in the document's namespace."""
        tag = f"{{{self.namespace}}}{name}" if self.namespace else name
        return ET.Element(tag, attrib or {})

    def insert_child(self, parent: ET.Element, index: int, child: ET.Element, depth: int) -> None:
        """Insert *child* into *parent* at *index*, indenting it for *depth*.

        *depth* is the nesting level of *parent* (0 for the project element).
        Only the whitespace around the new element is touched.
        """
        separator = self._group_separator if depth == 0 else "\n"
        inner = separator + self.indent * (depth + 1)
        children = list(parent)
        index = max(0, min(index, len(children)))

        if not children:
            parent.text = inner
            child.tail = "\n" + self.indent * depth
        elif index == 0:
            child.tail = parent.text
        else:
            previous = children[index - 1]
            child.tail = previous.tail
            previous.tail = inner
        parent.insert(index, child)

    def _children_named(self, name: str) -> list[ET.Element]:
        return [child for child in self.root if _local_name(child.tag) == name]

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    @property
    def property_groups(self) -> list[ProjectPropertyGroup]:
        return [ProjectPropertyGroup(e, self) for e in self._children_named(PROPERTY_GROUP)]

    @property
    def item_groups(self) -> list[ProjectItemGroup]:
        return [ProjectItemGroup(e, self) for e in self._children_named(ITEM_GROUP)]

    def add_property_group(self) -> ProjectPropertyGroup:
        """Add an empty property group after the last one.

        Without property groups the new one goes before the first item group,
        or at the end of the project.
        """
        children = list(self.root)
        existing = self._children_named(PROPERTY_GROUP)
        if existing:
            index = children.index(existing[-1]) + 1
        else:
            item_groups = self._children_named(ITEM_GROUP)
            index = children.index(item_groups[0]) if item_groups else len(children)

        element = self.new_element(PROPERTY_GROUP)
        self.insert_child(self.root, index, element, depth=0)
        return ProjectPropertyGroup(element, self)

    def add_item_group(self) -> ProjectItemGroup:
        """Add an empty item group after the last one, or at the end of the project."""
        children = list(self.root)
        existing = self._children_named(ITEM_GROUP)
        index = children.index(existing[-1]) + 1 if existing else len(children)

        element = self.new_element(ITEM_GROUP)
        self.insert_child(self.root, index, element, depth=0)
        return ProjectItemGroup(element, self)

    def first_property_group(self) -> ProjectPropertyGroup:
        """Return the first property group, creating one when there is none."""
        groups = self.property_groups
        return groups[0] if groups else self.add_property_group()

    def find_item_group_for_type(self, item_type: str) -> ProjectItemGroup | None:
        for group in self.item_groups:
            if group.has_item_type(item_type):
                return group
        return None

    def get_or_create_item_group(self, item_type: str) -> ProjectItemGroup:
        """Return the first item group already holding *item_type* items.

        A new empty group is added when no group holds that item type yet.
        """
        return self.find_item_group_for_type(item_type) or self.add_item_group()

    # ------------------------------------------------------------------
    # Document-wide lookups
    # ------------------------------------------------------------------

    def find_property(self, name: str) -> ProjectProperty | None:
        for group in self.property_groups:
            prop = group.find_property(name)
            if prop is not None:
                return prop
        return None

    def find_item(self, item_type: str, include: str) -> ProjectItem | None:
        for group in self.item_groups:
            item = group.find_item(item_type, include)
            if item is not None:
                return item
        return None

    def items_of_type(self, item_type: str) -> list[ProjectItem]:
        return [
            item
            for group in self.item_groups
            for item in group.items
            if _same_name(item.item_type, item_type)
        ]
