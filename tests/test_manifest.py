# -*- coding: utf-8 -*-
"""
Tests for the manifest compiler and package.xml parsing
"""

import pytest

from metaforce.exceptions import ManifestError
from metaforce.manifest import Manifest, Package, PackageType, compile_manifest


PACKAGE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<Package xmlns="http://soap.sforce.com/2006/04/metadata">
    <types>
        <members>Foo</members>
        <members>Bar</members>
        <name>ApexClass</name>
    </types>
    <types>
        <members>*</members>
        <name>ApexPage</name>
    </types>
    <version>23.0</version>
</Package>
"""


# =============================================================================
# COMPILE TESTS
# =============================================================================

class TestCompileManifest:
    """Tests for compile_manifest"""

    def test_single_wildcard_type(self):
        """{"ApexClass": ["*"]} compiles to one type record"""
        package = compile_manifest({"ApexClass": ["*"]}, "59.0")

        assert package.types == (PackageType(name="ApexClass", members=("*",)),)
        assert package.to_request() == {
            "types": [{"members": ["*"], "name": "ApexClass"}],
            "version": "59.0"
        }

    def test_preserves_type_and_member_order(self):
        """Type order and member order are kept as given"""
        manifest = {
            "ApexTrigger": ["Zeta", "Alpha"],
            "ApexClass": ["Middle", "*", "Another"],
            "CustomObject": ["Account"],
        }

        package = compile_manifest(manifest, "59.0")

        assert [t.name for t in package.types] == ["ApexTrigger", "ApexClass", "CustomObject"]
        assert package.types[0].members == ("Zeta", "Alpha")
        assert package.types[1].members == ("Middle", "*", "Another")

    def test_unknown_types_pass_through(self):
        package = compile_manifest({"NotARealType": ["X"]}, "59.0")
        assert package.types[0].name == "NotARealType"

    def test_string_member_becomes_list(self):
        package = compile_manifest({"ApexClass": "Foo"}, "59.0")
        assert package.types[0].members == ("Foo",)

    def test_empty_member_rejected(self):
        with pytest.raises(ManifestError):
            compile_manifest({"ApexClass": [""]}, "59.0")

    def test_members_come_before_name_on_the_wire(self):
        record = compile_manifest({"ApexClass": ["Foo"]}, "59.0").to_request()["types"][0]
        assert list(record) == ["members", "name"]

    def test_repeated_members_kept_as_given(self):
        package = compile_manifest({"ApexClass": ["Foo", "Bar", "Foo"]}, "59.0")
        assert package.types[0].members == ("Foo", "Bar", "Foo")


# =============================================================================
# MANIFEST TESTS
# =============================================================================

class TestManifest:
    """Tests for the Manifest mapping"""

    def test_from_xml_keeps_document_order(self):
        manifest = Manifest.from_xml(PACKAGE_XML)

        assert manifest.types() == ["ApexClass", "ApexPage"]
        assert manifest["ApexClass"] == ["Foo", "Bar"]
        assert manifest["ApexPage"] == ["*"]
        assert manifest.version == "23.0"

    def test_from_file(self, project_dir):
        manifest = Manifest.from_file(project_dir / "package.xml")
        assert dict(manifest) == {"ApexClass": ["*"]}

    def test_to_package_uses_given_version(self):
        package = Manifest.from_xml(PACKAGE_XML).to_package("59.0")

        assert isinstance(package, Package)
        assert package.version == "59.0"
        assert [t.name for t in package.types] == ["ApexClass", "ApexPage"]

    def test_to_package_falls_back_to_document_version(self):
        assert Manifest.from_xml(PACKAGE_XML).to_package().version == "23.0"

    def test_to_xml_parses_back(self):
        manifest = Manifest({"ApexClass": ["Foo & Co"], "ApexPage": ["*"]})

        parsed = Manifest.from_xml(manifest.to_xml("59.0"))

        assert dict(parsed) == {"ApexClass": ["Foo & Co"], "ApexPage": ["*"]}
        assert parsed.version == "59.0"

    def test_duplicate_members_collapse(self):
        manifest = Manifest({"ApexClass": ["Foo", "Bar", "Foo"]})
        manifest.add("ApexClass", "Bar", "Baz")

        assert manifest["ApexClass"] == ["Foo", "Bar", "Baz"]

    def test_remove(self):
        manifest = Manifest({"ApexClass": ["Foo", "Bar"], "ApexPage": ["*"]})

        manifest.remove("ApexClass", "Foo")
        manifest.remove("ApexPage")

        assert dict(manifest) == {"ApexClass": ["Bar"]}
        assert "ApexPage" not in manifest
        assert len(manifest) == 1

    def test_types_without_name_rejected(self):
        xml = '<Package xmlns="http://soap.sforce.com/2006/04/metadata"><types><members>Foo</members></types></Package>'
        with pytest.raises(ManifestError):
            Manifest.from_xml(xml)

    def test_invalid_xml_rejected(self):
        with pytest.raises(ManifestError):
            Manifest.from_xml("<Package><types>")

    def test_wrong_root_rejected(self):
        with pytest.raises(ManifestError):
            Manifest.from_xml("<Other/>")
