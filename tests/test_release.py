"""
Tests for driver-toolkit and release payload metadata projections.
"""
from __future__ import annotations

import pytest

from dtk_registry.errors import (
    EntryNotFound,
    FileNotFoundInLayer,
    MalformedTagEntry,
    MissingField,
    ProjectionError,
)
from dtk_registry.release import (
    DRIVER_TOOLKIT_RELEASE_PATH,
    IMAGE_REFERENCES_PATH,
    DriverToolkitEntry,
    ImageReferences,
    TagFrom,
    extract_toolkit_release,
    release_image_machine_os_config,
    release_manifests,
)
from tests.helpers.layer_helpers import TrackingLayer, image_references, make_layer

MOS_VERSIONS = "machine-os=414.92.202310170514-0"


def _toolkit_layer(release: dict) -> TrackingLayer:
    return TrackingLayer(make_layer([(DRIVER_TOOLKIT_RELEASE_PATH, release)]))


def _release_layer(tags: list) -> TrackingLayer:
    return TrackingLayer(make_layer([
        ("release-manifests/release-metadata", {"version": "4.14.0"}),
        (IMAGE_REFERENCES_PATH, image_references(tags)),
    ]))


class TestExtractToolkitRelease:
    """Test ``etc/driver-toolkit-release.json`` decoding."""

    def test_all_fields(self):
        layer = _toolkit_layer({
            "KERNEL_VERSION": "5.14.0-284.36.1.el9_2.x86_64",
            "RT_KERNEL_VERSION": "5.14.0-284.36.1.rt14.321.el9_2.x86_64",
            "RHEL_VERSION": "9.2",
        })

        entry = extract_toolkit_release(layer)

        assert entry == DriverToolkitEntry(
            image_url="",
            kernel_full_version="5.14.0-284.36.1.el9_2.x86_64",
            rt_kernel_full_version="5.14.0-284.36.1.rt14.321.el9_2.x86_64",
            os_version="9.2",
        )

    def test_extra_fields_ignored(self):
        layer = _toolkit_layer({
            "KERNEL_VERSION": "5.14.0",
            "RT_KERNEL_VERSION": "5.14.0-rt",
            "RHEL_VERSION": "9.2",
            "OCP_VERSION": "4.14",
        })
        assert extract_toolkit_release(layer).os_version == "9.2"

    def test_missing_rt_kernel_version(self):
        layer = _toolkit_layer({"KERNEL_VERSION": "5.14.0", "RHEL_VERSION": "9.2"})

        with pytest.raises(MissingField) as exc_info:
            extract_toolkit_release(layer)
        assert exc_info.value.field == "RT_KERNEL_VERSION"
        assert exc_info.value.path == DRIVER_TOOLKIT_RELEASE_PATH
        assert "RT_KERNEL_VERSION" in str(exc_info.value)

    def test_non_string_field(self):
        layer = _toolkit_layer({"KERNEL_VERSION": 5, "RT_KERNEL_VERSION": "x", "RHEL_VERSION": "9.2"})

        with pytest.raises(MissingField) as exc_info:
            extract_toolkit_release(layer)
        assert exc_info.value.field == "KERNEL_VERSION"

    def test_file_missing(self):
        layer = TrackingLayer(make_layer([("etc/os-release", "ID=rhel\n")]))
        with pytest.raises(FileNotFoundInLayer):
            extract_toolkit_release(layer)

    def test_to_dict(self):
        entry = DriverToolkitEntry("reg.io/dtk:v1", "5.14.0", "5.14.0-rt", "9.2")
        assert entry.to_dict() == {
            "imageURL": "reg.io/dtk:v1",
            "kernelFullVersion": "5.14.0",
            "RTKernelFullVersion": "5.14.0-rt",
            "OSVersion": "9.2",
        }


class TestReleaseManifests:
    """Test driver-toolkit image lookup in the release ImageStream."""

    def test_driver_toolkit_url(self):
        layer = _release_layer([
            {"name": "foo"},
            {"name": "driver-toolkit", "from": {"name": "reg.io/dtk:v1"}},
        ])

        assert release_manifests(layer) == "reg.io/dtk:v1"

    def test_first_matching_tag_wins(self):
        layer = _release_layer([
            {"name": "driver-toolkit", "from": {"kind": "DockerImage", "name": "reg.io/dtk:first"}},
            {"name": "driver-toolkit", "from": {"kind": "DockerImage", "name": "reg.io/dtk:second"}},
        ])
        assert release_manifests(layer) == "reg.io/dtk:first"

    def test_tag_missing(self):
        layer = _release_layer([{"name": "foo", "from": {"name": "reg.io/foo:v1"}}])

        with pytest.raises(EntryNotFound) as exc_info:
            release_manifests(layer)
        assert exc_info.value.tag == "driver-toolkit"

    @pytest.mark.parametrize("tag,field", [
        ({"name": "driver-toolkit"}, "from"),
        ({"name": "driver-toolkit", "from": "reg.io/dtk:v1"}, "from"),
        ({"name": "driver-toolkit", "from": {"kind": "DockerImage"}}, "from.name"),
        ({"name": "driver-toolkit", "from": {"name": 7}}, "from.name"),
    ])
    def test_malformed_tag(self, tag, field):
        layer = _release_layer([tag])

        with pytest.raises(MalformedTagEntry) as exc_info:
            release_manifests(layer)
        assert exc_info.value.tag == "driver-toolkit"
        assert exc_info.value.field == field

    def test_missing_spec_tags(self):
        layer = TrackingLayer(make_layer([(IMAGE_REFERENCES_PATH, {"kind": "ImageStream", "spec": {}})]))

        with pytest.raises(MissingField) as exc_info:
            release_manifests(layer)
        assert exc_info.value.field == "spec.tags"

    def test_malformed_unrelated_tags_are_tolerated(self):
        layer = _release_layer([
            {"name": "foo", "from": "not-an-object", "annotations": ["x"]},
            {"name": "bar", "from": {"name": 42}},
            {"name": "driver-toolkit", "from": {"kind": "DockerImage", "name": "reg.io/dtk:v1"}},
        ])

        assert release_manifests(layer) == "reg.io/dtk:v1"

    def test_tag_without_name(self):
        layer = _release_layer([{"from": {"name": "reg.io/dtk:v1"}}])
        with pytest.raises(MissingField):
            release_manifests(layer)


class TestImageReferencesModel:
    """Test the typed decode of tag entries."""

    def test_typed_fields(self):
        refs = ImageReferences.model_validate(image_references([
            {"name": "driver-toolkit", "from": {"kind": "DockerImage", "name": "reg.io/dtk:v1"}},
            {"name": "machine-os-content", "annotations": {"io.openshift.build.versions": "machine-os=1"}},
        ]))

        dtk = refs.find_tag("driver-toolkit")
        assert dtk.from_ == TagFrom(kind="DockerImage", name="reg.io/dtk:v1")
        assert dtk.annotations is None
        assert refs.find_tag("machine-os-content").annotations == {"io.openshift.build.versions": "machine-os=1"}

    @pytest.mark.parametrize("raw", ["reg.io/dtk:v1", 7, ["x"], None])
    def test_non_object_from_decodes_as_none(self, raw):
        refs = ImageReferences.model_validate(image_references([{"name": "t", "from": raw}]))
        assert refs.find_tag("t").from_ is None

    def test_non_string_name_decodes_as_none(self):
        refs = ImageReferences.model_validate(image_references([{"name": "t", "from": {"name": 7}}]))
        assert refs.find_tag("t").from_.name is None


class TestReleaseImageMachineOsConfig:
    """Test machine-os-content build versions lookup."""

    def test_versions_annotation(self):
        layer = _release_layer([
            {"name": "driver-toolkit", "from": {"name": "reg.io/dtk:v1"}},
            {
                "name": "machine-os-content",
                "annotations": {
                    "io.openshift.build.commit.id": "abc",
                    "io.openshift.build.versions": MOS_VERSIONS,
                },
                "from": {"name": "reg.io/mos:v1"},
            },
        ])

        assert release_image_machine_os_config(layer) == MOS_VERSIONS

    def test_tag_missing(self):
        layer = _release_layer([{"name": "driver-toolkit", "from": {"name": "reg.io/dtk:v1"}}])

        with pytest.raises(EntryNotFound) as exc_info:
            release_image_machine_os_config(layer)
        assert exc_info.value.tag == "machine-os-content"

    def test_annotations_missing(self):
        layer = _release_layer([{"name": "machine-os-content"}])

        with pytest.raises(MalformedTagEntry) as exc_info:
            release_image_machine_os_config(layer)
        assert exc_info.value.field == "annotations"

    def test_annotations_not_an_object(self):
        layer = _release_layer([{"name": "machine-os-content", "annotations": ["machine-os=1"]}])

        with pytest.raises(MalformedTagEntry) as exc_info:
            release_image_machine_os_config(layer)
        assert exc_info.value.field == "annotations"

    def test_versions_annotation_missing(self):
        layer = _release_layer([{"name": "machine-os-content", "annotations": {"other": "x"}}])

        with pytest.raises(MalformedTagEntry) as exc_info:
            release_image_machine_os_config(layer)
        assert exc_info.value.field == "annotations.io.openshift.build.versions"

    def test_errors_share_a_base(self):
        layer = _release_layer([])
        with pytest.raises(ProjectionError):
            release_image_machine_os_config(layer)
