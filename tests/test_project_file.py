"""Unit tests for the project file model (dotnet_template.core.project_file).

Tests cover:
- Loading: missing files, malformed XML, non-project roots
- Round-tripping: SDK-style, legacy namespace, CRLF, BOM, comments
- Property and item lookups (case-insensitive, first match wins)
- Group creation and placement, indentation of new elements
- Item metadata in element and attribute form
"""

from __future__ import annotations

import codecs
from pathlib import Path

import pytest

from conftest import EMPTY_PROJECT, LEGACY_PROJECT, SDK_PROJECT, write_project
from dotnet_template.core.exceptions import (
    ProjectFileNotFoundError,
    ProjectFileParseError,
    ProjectFileSaveError,
)
from dotnet_template.core.project_file import MSBUILD_NAMESPACE, ProjectRootElement


# ---------------------------------------------------------------------------
# Loading and saving
# ---------------------------------------------------------------------------


class TestOpen:
    @pytest.mark.unit
    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ProjectFileNotFoundError) as exc_info:
            ProjectRootElement.open(tmp_path / "Missing.csproj")
        assert "Missing.csproj" in exc_info.value.message

    @pytest.mark.unit
    def test_malformed_xml(self, tmp_path: Path):
        path = write_project(tmp_path, "<Project><PropertyGroup></Project>")
        with pytest.raises(ProjectFileParseError):
            ProjectRootElement.open(path)

    @pytest.mark.unit
    def test_root_must_be_project(self, tmp_path: Path):
        path = write_project(tmp_path, "<Solution />")
        with pytest.raises(ProjectFileParseError) as exc_info:
            ProjectRootElement.open(path)
        assert "<Solution>" in exc_info.value.reason

    @pytest.mark.unit
    def test_sdk_project_has_no_namespace(self, sdk_csproj: Path):
        project = ProjectRootElement.open(sdk_csproj)
        assert project.namespace == ""
        assert project.indent == "  "

    @pytest.mark.unit
    def test_legacy_project_namespace(self, legacy_csproj: Path):
        project = ProjectRootElement.open(legacy_csproj)
        assert project.namespace == MSBUILD_NAMESPACE


class TestRoundTrip:
    @pytest.mark.unit
    def test_sdk_project_unchanged(self, sdk_csproj: Path):
        assert ProjectRootElement.open(sdk_csproj).to_xml() == SDK_PROJECT

    @pytest.mark.unit
    def test_legacy_project_unchanged(self, legacy_csproj: Path):
        # Declaration, comment and default namespace all survive
        assert ProjectRootElement.open(legacy_csproj).to_xml() == LEGACY_PROJECT

    @pytest.mark.unit
    def test_root_attribute_order_kept_after_edit(self, legacy_csproj: Path):
        project = ProjectRootElement.open(legacy_csproj)
        project.first_property_group().add_property("LangVersion", "latest")
        project.save()

        text = legacy_csproj.read_text(encoding="utf-8")
        assert f'<Project ToolsVersion="15.0" xmlns="{MSBUILD_NAMESPACE}">' in text
        assert "<LangVersion>latest</LangVersion>" in text

    @pytest.mark.unit
    def test_root_quoting_kept(self, tmp_path: Path):
        content = "<Project Sdk='Microsoft.NET.Sdk'\n         DefaultTargets='Build'>\n</Project>\n"
        path = write_project(tmp_path, content)
        project = ProjectRootElement.open(path)
        project.first_property_group().add_property("OutputType", "Exe")

        assert project.to_xml().startswith(
            "<Project Sdk='Microsoft.NET.Sdk'\n         DefaultTargets='Build'>\n  <PropertyGroup>"
        )

    @pytest.mark.unit
    def test_changed_root_attributes_are_rewritten(self, legacy_csproj: Path):
        project = ProjectRootElement.open(legacy_csproj)
        project.root.set("ToolsVersion", "16.0")
        assert 'ToolsVersion="16.0"' in project.to_xml()

    @pytest.mark.unit
    def test_self_closing_root_gains_children(self, tmp_path: Path):
        path = write_project(tmp_path, '<Project Sdk="Microsoft.NET.Sdk" />\n')
        project = ProjectRootElement.open(path)
        project.first_property_group().add_property("OutputType", "Exe")
        project.save()

        text = path.read_text(encoding="utf-8")
        assert text.startswith('<Project Sdk="Microsoft.NET.Sdk">')
        assert text.rstrip().endswith("</Project>")
        assert ProjectRootElement.open(path).find_property("OutputType").value == "Exe"

    @pytest.mark.unit
    def test_crlf_line_endings_kept(self, tmp_path: Path):
        content = SDK_PROJECT.replace("\n", "\r\n")
        path = write_project(tmp_path, content)
        project = ProjectRootElement.open(path)
        project.save()
        assert path.read_bytes() == content.encode("utf-8")

    @pytest.mark.unit
    def test_byte_order_mark_kept(self, tmp_path: Path):
        path = tmp_path / "Bom.csproj"
        path.write_bytes(codecs.BOM_UTF8 + SDK_PROJECT.encode("utf-8"))

        project = ProjectRootElement.open(path)
        project.first_property_group().add_property("LangVersion", "latest")
        project.save()

        raw = path.read_bytes()
        assert raw.startswith(codecs.BOM_UTF8)
        assert raw.count(codecs.BOM_UTF8) == 1
        assert b"<LangVersion>latest</LangVersion>" in raw

    @pytest.mark.unit
    def test_save_to_other_path(self, sdk_csproj: Path, tmp_path: Path):
        target = tmp_path / "Copy.csproj"
        assert ProjectRootElement.open(sdk_csproj).save(target) == target
        assert target.read_text(encoding="utf-8") == SDK_PROJECT

    @pytest.mark.unit
    def test_save_failure_raises(self, sdk_csproj: Path, tmp_path: Path):
        project = ProjectRootElement.open(sdk_csproj)
        with pytest.raises(ProjectFileSaveError):
            project.save(tmp_path / "missing-dir" / "App.csproj")

    @pytest.mark.unit
    def test_create_new_project(self, tmp_path: Path):
        path = tmp_path / "New.csproj"
        project = ProjectRootElement.create(path)
        project.first_property_group().add_property("TargetFramework", "net8.0")
        project.save()

        reloaded = ProjectRootElement.open(path)
        assert reloaded.root.get("Sdk") == "Microsoft.NET.Sdk"
        assert reloaded.find_property("TargetFramework").value == "net8.0"


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


class TestProperties:
    @pytest.mark.unit
    def test_find_property_is_case_insensitive(self, sdk_csproj: Path):
        project = ProjectRootElement.open(sdk_csproj)
        prop = project.find_property("targetframework")
        assert prop is not None
        assert prop.name == "TargetFramework"
        assert prop.value == "net8.0"

    @pytest.mark.unit
    def test_first_match_wins(self, tmp_path: Path):
        path = write_project(
            tmp_path,
            "<Project>\n"
            "  <PropertyGroup>\n"
            "    <Foo>first</Foo>\n"
            "    <FOO>second</FOO>\n"
            "  </PropertyGroup>\n"
            "</Project>\n",
        )
        project = ProjectRootElement.open(path)
        assert project.first_property_group().find_property("foo").value == "first"

    @pytest.mark.unit
    def test_missing_property(self, sdk_csproj: Path):
        assert ProjectRootElement.open(sdk_csproj).find_property("LangVersion") is None

    @pytest.mark.unit
    def test_add_property_is_indented(self, sdk_csproj: Path):
        project = ProjectRootElement.open(sdk_csproj)
        project.first_property_group().add_property("LangVersion", "latest")

        assert project.to_xml() == SDK_PROJECT.replace(
            "    <Nullable>enable</Nullable>\n",
            "    <Nullable>enable</Nullable>\n    <LangVersion>latest</LangVersion>\n",
        )

    @pytest.mark.unit
    def test_empty_project_gets_one_group(self, empty_csproj: Path):
        project = ProjectRootElement.open(empty_csproj)
        project.first_property_group().add_property("LangVersion", "latest")

        assert len(project.property_groups) == 1
        assert project.to_xml() == (
            '<Project Sdk="Microsoft.NET.Sdk">\n'
            "  <PropertyGroup>\n"
            "    <LangVersion>latest</LangVersion>\n"
            "  </PropertyGroup>\n"
            "</Project>\n"
        )

    @pytest.mark.unit
    def test_new_property_group_goes_before_item_groups(self, tmp_path: Path):
        path = write_project(
            tmp_path,
            "<Project>\n"
            "  <ItemGroup>\n"
            '    <Compile Include="A.cs" />\n'
            "  </ItemGroup>\n"
            "</Project>\n",
        )
        project = ProjectRootElement.open(path)
        group = project.first_property_group()

        assert list(project.root)[0] is group.element
        assert len(project.item_groups) == 1

    @pytest.mark.unit
    def test_conditional_group_is_still_a_group(self, tmp_path: Path):
        path = write_project(
            tmp_path,
            "<Project>\n"
            "  <PropertyGroup Condition=\"'$(Configuration)' == 'Debug'\">\n"
            "    <Optimize>false</Optimize>\n"
            "  </PropertyGroup>\n"
            "</Project>\n",
        )
        group = ProjectRootElement.open(path).first_property_group()
        assert group.condition == "'$(Configuration)' == 'Debug'"


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------


class TestItems:
    @pytest.mark.unit
    def test_find_item_group_for_type(self, legacy_csproj: Path):
        project = ProjectRootElement.open(legacy_csproj)
        groups = project.item_groups

        assert project.find_item_group_for_type("Reference") == groups[0]
        assert project.find_item_group_for_type("compile") == groups[1]
        assert project.find_item_group_for_type("PackageReference") is None

    @pytest.mark.unit
    def test_find_item_is_case_insensitive(self, legacy_csproj: Path):
        project = ProjectRootElement.open(legacy_csproj)
        item = project.find_item("reference", "system.xml")
        assert item is not None
        assert item.include == "System.Xml"

    @pytest.mark.unit
    def test_get_or_create_item_group(self, sdk_csproj: Path):
        project = ProjectRootElement.open(sdk_csproj)
        assert project.item_groups == []

        group = project.get_or_create_item_group("PackageReference")
        group.add_item("PackageReference", "Newtonsoft.Json")

        assert project.get_or_create_item_group("PackageReference") == group
        assert len(project.item_groups) == 1

    @pytest.mark.unit
    def test_new_item_group_layout(self, sdk_csproj: Path):
        project = ProjectRootElement.open(sdk_csproj)
        item = project.get_or_create_item_group("PackageReference").add_item(
            "PackageReference", "Newtonsoft.Json"
        )
        item.add_metadata("Version", "13.0.3", as_attribute=True)

        assert project.to_xml() == SDK_PROJECT.replace(
            "</Project>\n",
            "  <ItemGroup>\n"
            '    <PackageReference Include="Newtonsoft.Json" Version="13.0.3" />\n'
            "  </ItemGroup>\n"
            "\n"
            "</Project>\n",
        )

    @pytest.mark.unit
    def test_new_item_group_after_last_item_group(self, legacy_csproj: Path):
        project = ProjectRootElement.open(legacy_csproj)
        group = project.add_item_group()
        assert list(project.root)[-1] is group.element
        assert len(project.item_groups) == 3

    @pytest.mark.unit
    def test_legacy_items_keep_namespace(self, legacy_csproj: Path):
        project = ProjectRootElement.open(legacy_csproj)
        project.add_item_group().add_item("PackageReference", "Serilog")
        project.save()

        text = legacy_csproj.read_text(encoding="utf-8")
        assert '<PackageReference Include="Serilog" />' in text
        assert "ns0:" not in text
        assert text.count("xmlns=") == 1
        assert ProjectRootElement.open(legacy_csproj).find_item("PackageReference", "Serilog") is not None

    @pytest.mark.unit
    def test_items_of_type_spans_groups(self, tmp_path: Path):
        path = write_project(
            tmp_path,
            "<Project>\n"
            "  <ItemGroup>\n"
            '    <Compile Include="A.cs" />\n'
            "  </ItemGroup>\n"
            "  <ItemGroup>\n"
            '    <None Include="readme.txt" />\n'
            '    <Compile Include="B.cs" />\n'
            "  </ItemGroup>\n"
            "</Project>\n",
        )
        project = ProjectRootElement.open(path)
        assert [i.include for i in project.items_of_type("Compile")] == ["A.cs", "B.cs"]


class TestMetadata:
    @pytest.mark.unit
    def test_reads_element_and_attribute_metadata(self, tmp_path: Path):
        path = write_project(
            tmp_path,
            "<Project>\n"
            "  <ItemGroup>\n"
            '    <PackageReference Include="Foo" Version="1.0.0">\n'
            "      <PrivateAssets>all</PrivateAssets>\n"
            "    </PackageReference>\n"
            "  </ItemGroup>\n"
            "</Project>\n",
        )
        item = ProjectRootElement.open(path).find_item("PackageReference", "Foo")

        assert item.metadata == [("Version", "1.0.0"), ("PrivateAssets", "all")]
        assert item.get_metadata("version") == "1.0.0"
        assert item.get_metadata("privateassets") == "all"
        assert item.get_metadata("ExcludeAssets") is None

    @pytest.mark.unit
    def test_include_is_not_metadata(self, legacy_csproj: Path):
        item = ProjectRootElement.open(legacy_csproj).find_item("Reference", "System")
        assert item.metadata == []

    @pytest.mark.unit
    def test_set_metadata_keeps_attribute_form(self, tmp_path: Path):
        path = write_project(
            tmp_path,
            '<Project>\n  <ItemGroup>\n    <PackageReference Include="Foo" PrivateAssets="none" />\n'
            "  </ItemGroup>\n</Project>\n",
        )
        project = ProjectRootElement.open(path)
        item = project.find_item("PackageReference", "Foo")

        assert item.set_metadata("PrivateAssets", "all") is True
        assert item.element.get("PrivateAssets") == "all"
        assert len(item.element) == 0

    @pytest.mark.unit
    def test_set_metadata_updates_element(self, tmp_path: Path):
        path = write_project(
            tmp_path,
            "<Project>\n  <ItemGroup>\n"
            '    <Reference Include="Lib">\n      <Private>true</Private>\n    </Reference>\n'
            "  </ItemGroup>\n</Project>\n",
        )
        item = ProjectRootElement.open(path).find_item("Reference", "Lib")

        assert item.set_metadata("private", "false") is True
        assert item.get_metadata("Private") == "false"
        assert item.set_metadata("Private", "false") is False
        assert len(item.metadata) == 1

    @pytest.mark.unit
    def test_add_metadata_elements_are_indented(self, sdk_csproj: Path):
        project = ProjectRootElement.open(sdk_csproj)
        item = project.add_item_group().add_item("Reference", "Lib")
        item.add_metadata("HintPath", "/libs/Lib.dll")
        item.add_metadata("Private", "true")

        assert (
            '    <Reference Include="Lib">\n'
            "      <HintPath>/libs/Lib.dll</HintPath>\n"
            "      <Private>true</Private>\n"
            "    </Reference>\n"
        ) in project.to_xml()


class TestEquality:
    @pytest.mark.unit
    def test_wrappers_compare_by_element(self, legacy_csproj: Path):
        project = ProjectRootElement.open(legacy_csproj)
        assert project.item_groups[0] == project.item_groups[0]
        assert project.item_groups[0] != project.item_groups[1]
        assert len({project.item_groups[0], project.item_groups[0]}) == 1

    @pytest.mark.unit
    def test_empty_project_text(self, empty_csproj: Path):
        assert ProjectRootElement.open(empty_csproj).to_xml() == EMPTY_PROJECT
