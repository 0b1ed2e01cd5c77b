"""
CLI smoke tests with fake collaborators.

Tests command wiring, output formats and exit codes without a cluster or
a registry. The engine is injected through the Typer context object.
"""
from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from dtk_registry.cli import app
from dtk_registry.cli_context import CLIContext
from dtk_registry.release import DRIVER_TOOLKIT_RELEASE_PATH, IMAGE_REFERENCES_PATH
from tests.helpers.layer_helpers import image_references, make_layer

DTK_IMAGE = "reg.io/ocp/dtk:v1"
RELEASE_IMAGE = "reg.io/ocp/release:4.14.0"


@pytest.fixture
def cli_context(settings, registry, transport):
    transport.put_image(DTK_IMAGE, "reg.io/ocp/dtk", [
        make_layer([("etc/os-release", "ID=rhel\n")]),
        make_layer([(DRIVER_TOOLKIT_RELEASE_PATH, {
            "KERNEL_VERSION": "5.14.0-284.el9.x86_64",
            "RT_KERNEL_VERSION": "5.14.0-284.rt14.el9.x86_64",
            "RHEL_VERSION": "9.2",
        })]),
    ])
    transport.put_image(RELEASE_IMAGE, "reg.io/ocp/release", [
        make_layer([(IMAGE_REFERENCES_PATH, image_references([
            {"name": "driver-toolkit", "from": {"name": DTK_IMAGE}},
            {"name": "machine-os-content",
             "annotations": {"io.openshift.build.versions": "machine-os=414.92"}},
        ]))]),
    ])
    return CLIContext(settings=settings, _registry=registry)


class TestCLISmokeTests:
    """Smoke tests for CLI commands with fake collaborators."""

    def setup_method(self):
        """Set up test environment."""
        self.runner = CliRunner()

    def _invoke(self, cli_context, args):
        return self.runner.invoke(app, args, obj={"context": cli_context})

    def test_digests(self, cli_context):
        result = self._invoke(cli_context, ["digests", DTK_IMAGE])

        assert result.exit_code == 0
        assert "Repository: reg.io/ocp/dtk" in result.stdout
        assert "Auth: pull secret" in result.stdout
        assert "(last)" in result.stdout

    def test_digests_json(self, cli_context):
        result = self._invoke(cli_context, ["digests", DTK_IMAGE, "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["repository"] == "reg.io/ocp/dtk"
        assert len(data["digests"]) == 2
        assert all(d.startswith("sha256:") for d in data["digests"])

    def test_toolkit_release(self, cli_context):
        result = self._invoke(cli_context, ["toolkit-release", DTK_IMAGE])

        assert result.exit_code == 0
        assert "Kernel: 5.14.0-284.el9.x86_64" in result.stdout
        assert "OS version: 9.2" in result.stdout

    def test_toolkit_release_json(self, cli_context):
        result = self._invoke(cli_context, ["toolkit-release", DTK_IMAGE, "--json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {
            "imageURL": DTK_IMAGE,
            "kernelFullVersion": "5.14.0-284.el9.x86_64",
            "RTKernelFullVersion": "5.14.0-284.rt14.el9.x86_64",
            "OSVersion": "9.2",
        }

    def test_toolkit_image(self, cli_context):
        result = self._invoke(cli_context, ["toolkit-image", RELEASE_IMAGE])

        assert result.exit_code == 0
        assert result.stdout.strip() == DTK_IMAGE

    def test_toolkit_image_json(self, cli_context):
        result = self._invoke(cli_context, ["toolkit-image", RELEASE_IMAGE, "--json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"imageURL": DTK_IMAGE}

    def test_machine_os(self, cli_context):
        result = self._invoke(cli_context, ["machine-os", RELEASE_IMAGE, "--json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"machineOSVersions": "machine-os=414.92"}

    def test_verbose_flag(self, cli_context):
        result = self._invoke(cli_context, ["--verbose", "machine-os", RELEASE_IMAGE])

        assert result.exit_code == 0
        assert "machine-os=414.92" in result.stdout


class TestCLIErrors:
    """Test exit codes and error output."""

    def setup_method(self):
        self.runner = CliRunner()

    def _invoke(self, cli_context, args):
        return self.runner.invoke(app, args, obj={"context": cli_context})

    def test_unknown_host_exits_4(self, cli_context):
        result = self._invoke(cli_context, ["digests", "other.io/org/img:v1"])

        assert result.exit_code == 4
        assert "Error:" in result.output
        assert "other.io" in result.output

    def test_invalid_reference_exits_2(self, cli_context):
        result = self._invoke(cli_context, ["digests", "reg.io/org/img"])
        assert result.exit_code == 2

    def test_missing_manifest_exits_1(self, cli_context):
        result = self._invoke(cli_context, ["toolkit-release", "reg.io/ocp/dtk:missing"])
        assert result.exit_code == 1

    def test_wrong_image_kind_exits_1(self, cli_context):
        """A driver-toolkit image carries no image-references file."""
        result = self._invoke(cli_context, ["toolkit-image", DTK_IMAGE])

        assert result.exit_code == 1
        assert "release-manifests/image-references" in result.output

    def test_missing_argument(self, cli_context):
        result = self._invoke(cli_context, ["digests"])
        assert result.exit_code != 0


class TestCLIContext:
    """Test context construction from the environment."""

    def test_arch_override(self, monkeypatch):
        monkeypatch.setenv("DTK_ARCH", "arm64")
        context = CLIContext.from_env(architecture="s390x")
        assert context.settings.architecture == "s390x"

    def test_arch_from_env(self, monkeypatch):
        monkeypatch.setenv("DTK_ARCH", "arm64")
        assert CLIContext.from_env().settings.architecture == "arm64"

    def test_registry_is_lazy_and_cached(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DTK_SECRET_STORE", "mounted")
        monkeypatch.setenv("DTK_SECRET_DIR", str(tmp_path))
        monkeypatch.setenv("DTK_ARCH", "arm64")
        context = CLIContext.from_env()

        assert context._registry is None
        registry = context.registry
        assert registry is context.registry
        assert registry.architecture == "arm64"
        registry.transport.close()
