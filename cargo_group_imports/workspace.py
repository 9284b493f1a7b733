"""Workspace discovery and configuration for cargo-group-imports.

Packages and settings are read from Cargo manifests. Settings live in the
root manifest::

    [workspace.metadata.group-imports]
    rustfmt = true
    edition = "2021"
    exclude = ["src/generated/*"]
"""

import logging
from pathlib import Path
import tomllib
from typing import Any
from typing import Dict
from typing import List
from typing import NamedTuple
from typing import Optional
from typing import Tuple

from cargo_group_imports.errors import WorkspaceError

LOG = logging.getLogger(__name__)

MANIFEST = "Cargo.toml"
CONFIG_KEY = "group-imports"
_GLOB_CHARS = frozenset("*?[")


class Package(NamedTuple):
    name: str
    root: Path


class Config(NamedTuple):
    rustfmt: bool = True
    edition: Optional[str] = None
    exclude: Tuple[str, ...] = ()


def normalize_package_name(name: str) -> str:
    """Return the spelling of a package name used in Rust paths."""
    return name.replace("-", "_")


def load_manifest(path: Path) -> Dict[str, Any]:
    """Parse a Cargo.toml file."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except FileNotFoundError as exc:
        raise WorkspaceError(f"No {MANIFEST} found at {path}") from exc
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise WorkspaceError(f"Could not read {path}: {exc}") from exc


def _package(manifest: Dict[str, Any], root: Path) -> Package:
    name = manifest.get("package", {}).get("name")
    if not isinstance(name, str):
        raise WorkspaceError(f"{root / MANIFEST} has no package name")
    return Package(normalize_package_name(name), root)


def _expand_member(root: Path, pattern: str) -> List[Path]:
    if _GLOB_CHARS.intersection(pattern):
        return sorted(p for p in root.glob(pattern) if p.is_dir())
    return [root / pattern]


def find_workspace_packages(root: str | Path) -> List[Package]:
    """Return the packages of the workspace rooted at ``root``.

    The root manifest counts as a package when it has a ``[package]`` table;
    ``[workspace] members`` globs, minus ``exclude``, add the member
    packages.
    """
    root_path = Path(root)
    manifest = load_manifest(root_path / MANIFEST)
    packages: List[Package] = []
    seen = set()
    if "package" in manifest:
        packages.append(_package(manifest, root_path))
        seen.add(root_path.resolve())

    workspace = manifest.get("workspace", {})
    excluded = {(root_path / path).resolve() for path in workspace.get("exclude", [])}
    for pattern in workspace.get("members", []):
        for member in _expand_member(root_path, pattern):
            resolved = member.resolve()
            if resolved in seen or resolved in excluded:
                continue
            if not (member / MANIFEST).is_file():
                LOG.debug("Skipping %s: no %s", member, MANIFEST)
                continue
            seen.add(resolved)
            packages.append(_package(load_manifest(member / MANIFEST), member))

    if not packages:
        raise WorkspaceError(f"{root_path / MANIFEST} declares no packages")
    return packages


def read_config(root: str | Path) -> Config:
    """Read settings from the root manifest, falling back to defaults."""
    manifest = load_manifest(Path(root) / MANIFEST)
    workspace = manifest.get("workspace", {})
    package = manifest.get("package", {})
    table = workspace.get("metadata", {}).get(CONFIG_KEY) or package.get("metadata", {}).get(CONFIG_KEY) or {}

    rustfmt = table.get("rustfmt", True)
    if not isinstance(rustfmt, bool):
        raise WorkspaceError(f"{CONFIG_KEY}.rustfmt must be a boolean")

    # rustfmt reading stdin does not know the crate's edition.
    edition = table.get("edition") or workspace.get("package", {}).get("edition") or package.get("edition")
    if edition is not None and not isinstance(edition, str):
        edition = None

    exclude = table.get("exclude", [])
    if not isinstance(exclude, list) or not all(isinstance(p, str) for p in exclude):
        raise WorkspaceError(f"{CONFIG_KEY}.exclude must be a list of strings")

    return Config(rustfmt=rustfmt, edition=edition, exclude=tuple(exclude))
