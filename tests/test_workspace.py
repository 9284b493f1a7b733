import pytest

from cargo_group_imports.errors import WorkspaceError
from cargo_group_imports.workspace import find_workspace_packages
from cargo_group_imports.workspace import read_config


def _write_package(path, name):
    path.mkdir(parents=True)
    (path / "Cargo.toml").write_text(f'[package]\nname = "{name}"\nversion = "0.1.0"\n')


def test_find_workspace_packages(tmp_path):
    (tmp_path / "Cargo.toml").write_text(
        '[package]\nname = "root-app"\nversion = "0.1.0"\n\n'
        '[workspace]\nmembers = ["crates/*", "tools/cli"]\nexclude = ["crates/skipped"]\n'
    )
    _write_package(tmp_path / "crates" / "core-lib", "core-lib")
    _write_package(tmp_path / "crates" / "skipped", "skipped")
    _write_package(tmp_path / "tools" / "cli", "my_cli")
    (tmp_path / "crates" / "notes").mkdir()

    packages = find_workspace_packages(tmp_path)
    assert [p.name for p in packages] == ["root_app", "core_lib", "my_cli"]
    assert packages[1].root == tmp_path / "crates" / "core-lib"


def test_virtual_manifest_without_members(tmp_path):
    (tmp_path / "Cargo.toml").write_text("[workspace]\nmembers = []\n")
    with pytest.raises(WorkspaceError):
        find_workspace_packages(tmp_path)


def test_missing_manifest(tmp_path):
    with pytest.raises(WorkspaceError):
        find_workspace_packages(tmp_path)


def test_invalid_manifest(tmp_path):
    (tmp_path / "Cargo.toml").write_text("[package\n")
    with pytest.raises(WorkspaceError):
        find_workspace_packages(tmp_path)


def test_read_config_defaults(tmp_path):
    (tmp_path / "Cargo.toml").write_text('[package]\nname = "app"\n')
    config = read_config(tmp_path)
    assert config.rustfmt is True
    assert config.edition is None
    assert config.exclude == ()


def test_read_config_from_workspace_metadata(tmp_path):
    (tmp_path / "Cargo.toml").write_text(
        '[workspace]\nmembers = []\n\n'
        '[workspace.package]\nedition = "2021"\n\n'
        '[workspace.metadata.group-imports]\nrustfmt = false\nexclude = ["src/gen/*"]\n'
    )
    config = read_config(tmp_path)
    assert config.rustfmt is False
    assert config.edition == "2021"
    assert config.exclude == ("src/gen/*",)


def test_read_config_rejects_bad_values(tmp_path):
    (tmp_path / "Cargo.toml").write_text(
        '[package]\nname = "app"\n\n[package.metadata.group-imports]\nrustfmt = "yes"\n'
    )
    with pytest.raises(WorkspaceError):
        read_config(tmp_path)
