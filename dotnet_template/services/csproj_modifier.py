"""Idempotent edits to MSBuild project files.

Every public method loads the project file, applies its edit, saves only when
something changed and then drops the document, so no state is shared between
calls. Failures are logged and reported as ``False``; nothing is raised to the
caller.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger as default_logger

from dotnet_template.core.enums import (
    CSharpLanguageVersion,
    ItemType,
    item_type_for_extension,
    language_version_string,
)
from dotnet_template.core.project_file import ProjectRootElement
from dotnet_template.core.utils.file_utils import include_file_name

if TYPE_CHECKING:
    from loguru import Logger

LANG_VERSION_PROPERTY = "LangVersion"
ENABLE_DEFAULT_COMPILE_ITEMS = "EnableDefaultCompileItems"

HINT_PATH = "HintPath"
PRIVATE = "Private"
VERSION = "Version"
EXCLUDE_ASSETS = "ExcludeAssets"
PRIVATE_ASSETS = "PrivateAssets"


def set_property_value(project: ProjectRootElement, name: str, value: str) -> bool:
    """Set *name* in the first property group of *project*.

    Returns ``True`` when the property was added or its value changed.
    """
    group = project.first_property_group()
    existing = group.find_property(name)

    if existing is None:
        group.add_property(name, value)
        return True

    if existing.value != value:
        existing.value = value
        return True

    return False



class CsprojModifier:
    """Applies property, reference, source file and package edits to a project file."""

    def __init__(self, log: Logger | None = None):
        self.logger = log or default_logger

    def _project_exists(self, csproj_path: str | Path) -> bool:
        if not Path(csproj_path).is_file():
            self.logger.error(f".csproj file does not exist: {csproj_path}")
            return False
        return True

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    def set_property(self, csproj_path: str | Path, property_name: str, property_value: str) -> bool:
        """Set or update a property in the first property group.

        Args:
            csproj_path: The path to the .csproj file.
            property_name: The property to set (e.g. LangVersion, TargetFramework).
            property_value: The value to assign (e.g. "latest", "net8.0").

        Returns:
            True if the file was changed and saved; False if the property
            already had that value or an error occurred.
        """
        if not self._project_exists(csproj_path):
            return False

        try:
            project = ProjectRootElement.open(csproj_path)
            changed = set_property_value(project, property_name, property_value)

            if changed:
                project.save()
                self.logger.success(
                    f"Set property '{property_name}' to '{property_value}' in .csproj file: {csproj_path}"
                )
            else:
                self.logger.info(
                    f"Property '{property_name}' was already set to '{property_value}' in .csproj file: {csproj_path}"
                )
            return changed

        except Exception as e:
            self.logger.exception(
                f"Failed to modify .csproj file '{csproj_path}' for property '{property_name}': {e}"
            )
            return False

    def get_property(self, csproj_path: str | Path, property_name: str) -> str | None:
        """Read a property value from any property group; None when absent or unreadable."""
        try:
            project = ProjectRootElement.open(csproj_path)
        except Exception as e:
            self.logger.warning(f"Could not read .csproj file '{csproj_path}': {e}")
            return None

        prop = project.find_property(property_name)
        return prop.value if prop is not None else None

    def ensure_property(self, csproj_path: str | Path, property_name: str, property_value: str) -> bool:
        """True if the property holds *property_value* afterwards, whether or not it had to change."""
        if self.set_property(csproj_path, property_name, property_value):
            return True
        return self.get_property(csproj_path, property_name) == property_value

    def set_language_version(
        self, csproj_path: str | Path, lang_version: CSharpLanguageVersion | str
    ) -> bool:
        """Set the C# LangVersion property; unknown versions become "latest"."""
        return self.set_property(csproj_path, LANG_VERSION_PROPERTY, language_version_string(lang_version))

    # ------------------------------------------------------------------
    # Local DLL references
    # ------------------------------------------------------------------

    def add_references(
        self,
        csproj_path: str | Path,
        *dll_paths: str | Path,
        copy_local: bool = True,
    ) -> bool:
        """Add references to local DLLs, with HintPath and Private metadata.

        DLLs that do not exist are skipped with a warning, and DLLs already
        referenced (by file name without extension) are left alone.

        Returns:
            True on success, including when nothing needed adding; False if
            the project file is missing or could not be read or written.
        """
        if not self._project_exists(csproj_path):
            return False

        if not dll_paths:
            self.logger.info("No DLL paths provided to add.")
            return True

        try:
            project = ProjectRootElement.open(csproj_path)
            reference_type = ItemType.REFERENCE.value
            item_group = project.find_item_group_for_type(reference_type)

            added = 0
            for dll_path in dll_paths:
                dll = Path(dll_path)
                if not dll.is_file():
                    self.logger.warning(f"DLL file does not exist, skipping: {dll_path}")
                    continue

                name = dll.stem
                hint_path = str(dll.resolve())

                if project.find_item(reference_type, name) is not None:
                    self.logger.info(f"Reference to '{name}' already exists, skipping.")
                    continue

                if item_group is None:
                    item_group = project.add_item_group()

                item = item_group.add_item(reference_type, name)
                item.add_metadata(HINT_PATH, hint_path)
                item.add_metadata(PRIVATE, "true" if copy_local else "false")

                action = "Added reference (and set Copy Local)" if copy_local else "Added reference (without Copy Local)"
                self.logger.info(f"{action} to '{name}' from '{hint_path}'")
                added += 1

            if added:
                project.save()
                self.logger.success(f"Modified .csproj file: {csproj_path}")
            else:
                self.logger.info(f"No new references were added to .csproj file: {csproj_path}")
            return True

        except Exception as e:
            self.logger.exception(f"Failed to modify .csproj file '{csproj_path}': {e}")
            return False

    # ------------------------------------------------------------------
    # Source files
    # ------------------------------------------------------------------

    def _copy_into_project(self, source: Path, target: Path, overwrite_existing: bool) -> None:
        if target.exists():
            if target.resolve() == source.resolve():
                self.logger.debug(f"File '{target}' is already inside the project directory.")
            elif overwrite_existing:
                self.logger.info(f"Overwriting existing file: {target}")
                shutil.copy2(source, target)
            else:
                self.logger.info(
                    f"File '{target}' already exists in project directory. Skipping copy. "
                    "(Set overwrite_existing=True to replace)"
                )
        else:
            self.logger.info(f"Copying new file to project: {target}")
            shutil.copy2(source, target)

    def add_source_files(
        self,
        csproj_path: str | Path,
        *source_paths: str | Path,
        overwrite_existing: bool = False,
    ) -> bool:
        """Copy files next to the project file and register them as items.

        EnableDefaultCompileItems is forced to "false" so the explicit Compile
        items do not clash with the SDK's default globs. The item type comes
        from the file extension (Compile, EmbeddedResource or None).

        Args:
            csproj_path: The path to the .csproj file.
            *source_paths: Files to add.
            overwrite_existing: Replace files of the same name already in the
                project directory. Existing files are registered either way.

        Returns:
            True on success, including when nothing needed adding.
        """
        if not self._project_exists(csproj_path):
            return False

        if not source_paths:
            self.logger.info("No source file paths provided to add.")
            return True

        try:
            project = ProjectRootElement.open(csproj_path)
            project_dir = Path(csproj_path).resolve().parent

            property_changed = set_property_value(project, ENABLE_DEFAULT_COMPILE_ITEMS, "false")
            if property_changed:
                self.logger.info(f"Set {ENABLE_DEFAULT_COMPILE_ITEMS} to false.")
            else:
                self.logger.debug(f"{ENABLE_DEFAULT_COMPILE_ITEMS} is already false.")

            added = 0
            for source_path in source_paths:
                source = Path(source_path)
                if not source.is_file():
                    self.logger.warning(f"Source file does not exist, skipping: {source_path}")
                    continue

                file_name = source.name
                self._copy_into_project(source, project_dir / file_name, overwrite_existing)

                item_type = item_type_for_extension(source.suffix).value
                already_listed = any(
                    include_file_name(item.include).lower() == file_name.lower()
                    for item in project.items_of_type(item_type)
                )
                if already_listed:
                    self.logger.info(f"'{item_type}' item '{file_name}' already exists in .csproj, skipping.")
                    continue

                project.get_or_create_item_group(item_type).add_item(item_type, file_name)
                self.logger.info(f"Added '{item_type}' item '{file_name}' to .csproj")
                added += 1

            if added or property_changed:
                project.save()
                self.logger.success(f"Modified .csproj file: {csproj_path}")
            else:
                self.logger.info(f"No new source items were added to .csproj file: {csproj_path}")
            return True

        except Exception as e:
            self.logger.exception(f"Failed to modify .csproj file '{csproj_path}' for source files: {e}")
            return False

    # ------------------------------------------------------------------
    # NuGet packages
    # ------------------------------------------------------------------

    def add_package_reference(
        self,
        csproj_path: str | Path,
        package_name: str,
        version: str | None = None,
    ) -> bool:
        """Add a PackageReference unless one with that name already exists.

        An existing reference is never updated, so the first version written
        wins. Use :meth:`set_package_metadata` to change metadata later.
        """
        if not package_name or not package_name.strip():
            self.logger.error("Package name must not be empty.")
            return False

        if not self._project_exists(csproj_path):
            return False

        try:
            project = ProjectRootElement.open(csproj_path)
            package_type = ItemType.PACKAGE_REFERENCE.value

            if project.find_item(package_type, package_name) is not None:
                self.logger.info(f"Package '{package_name}' is already referenced, skipping.")
                return True

            item = project.get_or_create_item_group(package_type).add_item(package_type, package_name)
            if version:
                item.add_metadata(VERSION, version, as_attribute=True)

            project.save()
            suffix = f" {version}" if version else ""
            self.logger.success(f"Added package '{package_name}'{suffix} to .csproj file: {csproj_path}")
            return True

        except Exception as e:
            self.logger.exception(
                f"Failed to add package '{package_name}' to .csproj file '{csproj_path}': {e}"
            )
            return False

    def set_package_metadata(
        self,
        csproj_path: str | Path,
        package_name: str,
        exclude_assets: str | None = None,
        private_assets: str | None = None,
    ) -> bool:
        """Update or insert ExcludeAssets / PrivateAssets on an existing PackageReference.

        Empty values are ignored. Fails when the package is not referenced.
        """
        if not package_name or not package_name.strip():
            self.logger.error("Package name must not be empty.")
            return False

        if not self._project_exists(csproj_path):
            return False

        try:
            project = ProjectRootElement.open(csproj_path)
            item = project.find_item(ItemType.PACKAGE_REFERENCE.value, package_name)
            if item is None:
                self.logger.error(f"Package '{package_name}' is not referenced in .csproj file: {csproj_path}")
                return False

            for key, value in ((EXCLUDE_ASSETS, exclude_assets), (PRIVATE_ASSETS, private_assets)):
                if not value:
                    continue
                if item.set_metadata(key, value):
                    self.logger.info(f"Set {key}='{value}' on package '{package_name}'")
                else:
                    self.logger.debug(f"{key} on package '{package_name}' is already '{value}'")

            project.save()
            self.logger.success(f"Updated metadata of package '{package_name}' in .csproj file: {csproj_path}")
            return True

        except Exception as e:
            self.logger.exception(
                f"Failed to set metadata of package '{package_name}' in .csproj file '{csproj_path}': {e}"
            )
            return False
