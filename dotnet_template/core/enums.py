"""Closed enumerations for templates, frameworks, language versions and item types."""

from enum import Enum


class ProjectTemplate(str, Enum):
    """`dotnet new` templates, valued by their short names."""

    CONSOLE = "console"
    CLASS_LIB = "classlib"
    WEB_API = "webapi"
    MVC = "mvc"
    WIN_FORMS = "winforms"
    WPF = "wpf"
    WORKER = "worker"
    XUNIT = "xunit"
    NUNIT = "nunit"
    MSTEST = "mstest"
    RAZOR_CLASS_LIBRARY = "razorclasslib"


class DotNetFrameworkVersion(str, Enum):
    """Target framework monikers accepted by `dotnet new -f`."""

    NET50 = "net5.0"
    NET60 = "net6.0"
    NET70 = "net7.0"
    NET80 = "net8.0"
    NET90 = "net9.0"
    NETSTANDARD20 = "netstandard2.0"
    NETSTANDARD21 = "netstandard2.1"


class CSharpLanguageVersion(str, Enum):
    """Values for the LangVersion property."""

    LATEST = "latest"
    PREVIEW = "preview"
    CSHARP3 = "3.0"
    CSHARP4 = "4.0"
    CSHARP5 = "5.0"
    CSHARP6 = "6.0"
    CSHARP7 = "7.0"
    CSHARP8 = "8.0"
    CSHARP9 = "9.0"
    CSHARP10 = "10.0"
    CSHARP11 = "11.0"
    CSHARP12 = "12.0"
    CSHARP13 = "13.0"


class ItemType(str, Enum):
    """MSBuild item element names handled by the modifier."""

    REFERENCE = "Reference"
    COMPILE = "Compile"
    NONE = "None"
    EMBEDDED_RESOURCE = "EmbeddedResource"
    PACKAGE_REFERENCE = "PackageReference"


_LANGUAGE_VERSION_STRINGS: dict[CSharpLanguageVersion, str] = {
    version: version.value for version in CSharpLanguageVersion
}

_EXTENSION_ITEM_TYPES: dict[str, ItemType] = {
    ".cs": ItemType.COMPILE,
    ".vb": ItemType.COMPILE,
    ".fs": ItemType.COMPILE,
    ".resx": ItemType.EMBEDDED_RESOURCE,
    # Could also be Content depending on intent
    ".config": ItemType.NONE,
    ".txt": ItemType.NONE,
    ".json": ItemType.NONE,
    ".xml": ItemType.NONE,
}


def language_version_string(version: CSharpLanguageVersion | str) -> str:
    """Return the LangVersion string for *version*, ``"latest"`` when unmapped."""
    return _LANGUAGE_VERSION_STRINGS.get(version, CSharpLanguageVersion.LATEST.value)


def item_type_for_extension(extension: str) -> ItemType:
    """Map a file extension (with the leading dot) to an MSBuild item type.

    Unknown extensions map to ``None`` items.
    """
    return _EXTENSION_ITEM_TYPES.get(extension.lower(), ItemType.NONE)
