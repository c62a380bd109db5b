"""Tests for range config file storage and validation."""

from pathlib import Path

import pytest
import yaml

from ludus_mcp.models import ErrorKind
from ludus_mcp.services.errors import InvalidArgumentError
from ludus_mcp.services.range_configs import (
    PathTraversalError,
    RangeConfigStore,
    find_credentials,
    validate_range_config,
    validate_relative_path,
)

VALID_CONFIG = """\
ludus:
  - vm_name: "{{ range_id }}-dc01"
    hostname: "{{ range_id }}-DC01"
    template: win2022-server-x64-template
    vlan: 10
    ip_last_octet: 11
    ram_gb: 8
    cpus: 4
    roles:
      - ludus_adcs
  - vm_name: "{{ range_id }}-kali"
    hostname: "{{ range_id }}-kali"
    template: kali-x64-desktop-template
    vlan: 99
    ip_last_octet: 1
    ram_gb: 8
    cpus: 4
"""


def vm(**overrides):
    entry = {
        "vm_name": "ws01",
        "hostname": "WS01",
        "template": "win11-22h2-x64-enterprise-template",
        "vlan": 10,
        "ip_last_octet": 21,
        "ram_gb": 8,
        "cpus": 2,
    }
    entry.update(overrides)
    return entry


@pytest.fixture
def store(tmp_path: Path) -> RangeConfigStore:
    return RangeConfigStore(tmp_path / "range-config-templates")


class TestRelativePaths:
    @pytest.mark.parametrize(
        "path", ["lab.yml", "base-configs/ad.yaml", "alice/lab_2.json", "notes"]
    )
    def test_accepted(self, path: str) -> None:
        assert validate_relative_path(path) == path

    @pytest.mark.parametrize(
        "path", ["/etc/passwd.yml", "\\share\\x.yml", "../x.yml", "a/../../x.yml", "~/x.yml"]
    )
    def test_traversal_rejected(self, path: str) -> None:
        with pytest.raises(PathTraversalError):
            validate_relative_path(path)

    @pytest.mark.parametrize("path", ["", "   ", "lab config.yml", "lab;rm.yml", "lab.sh"])
    def test_invalid_rejected(self, path: str) -> None:
        with pytest.raises(InvalidArgumentError):
            validate_relative_path(path)


class TestValidateRangeConfig:
    def test_valid_config(self) -> None:
        report = validate_range_config(yaml.safe_load(VALID_CONFIG))

        assert report.valid is True
        assert report.errors == []

    def test_top_level_must_be_mapping(self) -> None:
        report = validate_range_config(["ludus"])

        assert report.valid is False
        assert report.errors == ["Configuration must be a mapping at the top level"]

    def test_ludus_key_required(self) -> None:
        report = validate_range_config({"network": {}})

        assert report.errors == ["Missing required key: ludus"]

    def test_empty_vm_list(self) -> None:
        assert validate_range_config({"ludus": []}).valid is False

    def test_missing_vm_keys(self) -> None:
        entry = vm()
        del entry["template"]
        del entry["cpus"]

        report = validate_range_config({"ludus": [entry]})

        assert report.errors == [
            "ludus[0]: missing required key 'template'",
            "ludus[0]: missing required key 'cpus'",
        ]

    def test_integer_ranges(self) -> None:
        report = validate_range_config(
            {"ludus": [vm(vlan=1, ip_last_octet=256, ram_gb="8", cpus=True)]}
        )

        assert report.errors == [
            "ludus[0].vlan: 1 is outside 2-255",
            "ludus[0].ip_last_octet: 256 is outside 1-255",
            "ludus[0].ram_gb: expected an integer, got '8'",
            "ludus[0].cpus: expected an integer, got True",
        ]

    def test_duplicate_vm_names(self) -> None:
        report = validate_range_config({"ludus": [vm(), vm(ip_last_octet=22)]})

        assert report.errors == ["ludus[1].vm_name: duplicate name 'ws01'"]

    def test_roles_must_be_list(self) -> None:
        report = validate_range_config({"ludus": [vm(roles="ludus_sccm")]})

        assert report.errors == ["ludus[0].roles: expected a list"]

    def test_unknown_top_level_key_is_warning(self) -> None:
        report = validate_range_config({"ludus": [vm()], "extras": True})

        assert report.valid is True
        assert report.warnings == ["Unknown top-level key: extras"]


def test_find_credentials() -> None:
    assert find_credentials('tailscale_api_key: "tskey0123456789abcdefghijk"')
    assert not find_credentials('api_key: "{{LudusCredName-alice-tailscale}}"')
    assert not find_credentials(VALID_CONFIG)


class TestRangeConfigStore:
    def test_write_then_read(self, store: RangeConfigStore) -> None:
        written = store.write(VALID_CONFIG, "ad-lab.yml")

        assert written.success is True
        assert written.data["relativePath"] == "ad-lab.yml"
        assert written.data["credentialWarning"] is False
        assert (store.root / "ad-lab.yml").read_text() == VALID_CONFIG

        read = store.read("ad-lab.yml")
        assert read.success is True
        assert read.data["content"] == VALID_CONFIG
        assert read.raw_output == VALID_CONFIG

    def test_write_bare_name_under_user(self, store: RangeConfigStore) -> None:
        result = store.write(VALID_CONFIG, "lab.yml", user="alice")

        assert result.success is True
        assert result.data["relativePath"] == str(Path("alice") / "lab.yml")
        assert (store.root / "alice" / "lab.yml").exists()

    def test_write_nested_path_ignores_user(self, store: RangeConfigStore) -> None:
        result = store.write(VALID_CONFIG, "base-configs/lab.yml", user="alice")

        assert result.success is True
        assert (store.root / "base-configs" / "lab.yml").exists()

    def test_user_with_slash_rejected(self, store: RangeConfigStore) -> None:
        result = store.write(VALID_CONFIG, "lab.yml", user="alice/bob")

        assert result.error_kind is ErrorKind.INVALID_ARGUMENT

    def test_invalid_config_not_written(self, store: RangeConfigStore) -> None:
        result = store.write("ludus: []\n", "broken.yml")

        assert result.success is False
        assert result.error_kind is ErrorKind.INVALID_ARGUMENT
        assert result.message.startswith("Configuration not saved: ")
        assert not (store.root / "broken.yml").exists()

    def test_traversal_not_written(self, store: RangeConfigStore, tmp_path: Path) -> None:
        result = store.write(VALID_CONFIG, "../escape.yml")

        assert result.error_kind is ErrorKind.INVALID_ARGUMENT
        assert "traversal" in result.message
        assert not (tmp_path / "escape.yml").exists()

    def test_symlink_escape_rejected(self, store: RangeConfigStore, tmp_path: Path) -> None:
        outside = tmp_path / "outside"
        outside.mkdir()
        store.root.mkdir()
        try:
            (store.root / "link").symlink_to(outside, target_is_directory=True)
        except OSError:
            pytest.skip("symlinks not available")

        result = store.write(VALID_CONFIG, "link/x.yml")

        assert result.error_kind is ErrorKind.INVALID_ARGUMENT
        assert not (outside / "x.yml").exists()

    def test_credential_warning(self, store: RangeConfigStore) -> None:
        content = VALID_CONFIG + 'notify:\n  token: "abcdefghijklmnopqrstuvwxyz012345"\n'

        result = store.write(content, "notify.yml")

        assert result.success is True
        assert result.data["credentialWarning"] is True

    def test_read_missing(self, store: RangeConfigStore) -> None:
        result = store.read("nope.yml")

        assert result.error_kind is ErrorKind.NOT_FOUND

    def test_validate_inline_invalid_yaml(self, store: RangeConfigStore) -> None:
        result = store.validate(content="ludus: [unclosed\n")

        assert result.success is True
        assert result.message == "Configuration has validation errors"
        assert result.data["source"] == "inline content"
        assert result.data["validation"]["errors"][0].startswith("Invalid YAML syntax")

    def test_validate_saved_file(self, store: RangeConfigStore) -> None:
        store.write(VALID_CONFIG, "ad.yml")

        result = store.validate(source="ad.yml")

        assert result.message == "Configuration is valid"
        assert result.data["source"] == "ad.yml"

    def test_validate_needs_input(self, store: RangeConfigStore) -> None:
        assert store.validate().error_kind is ErrorKind.INVALID_ARGUMENT

    def test_list_recursive_by_default(self, store: RangeConfigStore) -> None:
        store.write(VALID_CONFIG, "a.yml")
        store.write(VALID_CONFIG, "base-configs/b.yaml")
        (store.root / "broken.yml").write_text("ludus: [\n")
        (store.root / "readme.txt").write_text("not a config")

        result = store.list_configs()

        assert [entry["path"] for entry in result.data] == [
            "a.yml",
            str(Path("base-configs") / "b.yaml"),
            "broken.yml",
        ]
        assert [entry["valid"] for entry in result.data] == [True, True, False]

    def test_list_directory_not_recursive(self, store: RangeConfigStore) -> None:
        store.write(VALID_CONFIG, "base-configs/b.yml")
        store.write(VALID_CONFIG, "base-configs/deep/c.yml")

        result = store.list_configs("base-configs")

        assert [entry["path"] for entry in result.data] == [
            str(Path("base-configs") / "b.yml")
        ]

    def test_list_empty_root(self, store: RangeConfigStore) -> None:
        result = store.list_configs()

        assert result.success is True
        assert result.data == []

    def test_list_missing_directory(self, store: RangeConfigStore) -> None:
        assert store.list_configs("missing").error_kind is ErrorKind.NOT_FOUND
