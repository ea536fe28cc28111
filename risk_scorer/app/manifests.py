"""매니페스트 파서(Manifest parsers).

Each parser maps raw file content to package names. The ecosystem comes
from the manifest type, not from the package name.
"""
from __future__ import annotations

import json
import re
import tomllib
from pathlib import PurePosixPath
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from common_lib.logger import get_logger
from osv_lookup.app.models import Ecosystem
from repo_scanner.app.models import DependencyDeclaration

logger = get_logger(__name__)

# Leading distribution name of a requirement line; extras, specifiers and markers follow it
_REQUIREMENT_NAME = re.compile(r"^([A-Za-z0-9][A-Za-z0-9._-]*)")
# Direct URL or VCS references name no index package
_URL_REFERENCE = re.compile(r"^(?:[A-Za-z][A-Za-z0-9+.-]*://|(?:git|hg|svn|bzr)\+)")

Parser = Callable[[str], List[str]]


def parse_package_json(content: str) -> List[str]:
    """package.json 의존성 추출(Declared and dev dependencies of package.json)."""

    data = json.loads(content)
    if not isinstance(data, dict):
        raise ValueError("package.json root is not an object")
    names: List[str] = []
    for section in ("dependencies", "devDependencies"):
        block = data.get(section) or {}
        if isinstance(block, dict):
            names.extend(str(name) for name in block)
    return names


def _requirement_name(line: str) -> Optional[str]:
    stripped = line.split("#", 1)[0].strip()
    if not stripped or stripped.startswith("-") or _URL_REFERENCE.match(stripped):
        return None
    match = _REQUIREMENT_NAME.match(stripped)
    return match.group(1) if match else None


def parse_requirements(content: str) -> List[str]:
    """requirements.txt 패키지 추출(Package names from a requirement list)."""

    names: List[str] = []
    for line in content.splitlines():
        name = _requirement_name(line)
        if name:
            names.append(name)
    return names


def _names_from_specs(specs: Iterable[Any]) -> List[str]:
    names: List[str] = []
    for spec in specs:
        if isinstance(spec, str):
            name = _requirement_name(spec)
            if name:
                names.append(name)
    return names


def _poetry_names(block: Any) -> List[str]:
    if not isinstance(block, dict):
        return []
    return [str(name) for name in block if str(name).lower() != "python"]


def parse_pyproject(content: str) -> List[str]:
    """pyproject.toml 의존성 추출(PEP 621 and Poetry dependency tables)."""

    data = tomllib.loads(content)
    names: List[str] = []

    project = data.get("project") or {}
    names.extend(_names_from_specs(project.get("dependencies") or []))
    for specs in (project.get("optional-dependencies") or {}).values():
        names.extend(_names_from_specs(specs or []))

    poetry = (data.get("tool") or {}).get("poetry") or {}
    names.extend(_poetry_names(poetry.get("dependencies")))
    names.extend(_poetry_names(poetry.get("dev-dependencies")))
    for group in (poetry.get("group") or {}).values():
        if isinstance(group, dict):
            names.extend(_poetry_names(group.get("dependencies")))
    return names


def parse_pipfile(content: str) -> List[str]:
    """Pipfile 패키지 추출(Packages and dev-packages of a Pipfile)."""

    data = tomllib.loads(content)
    names: List[str] = []
    for section in ("packages", "dev-packages"):
        names.extend(_poetry_names(data.get(section)))
    return names


def resolve_parser(path: str) -> Optional[Tuple[Ecosystem, Parser]]:
    """경로별 파서 선택(Pick the parser for a manifest path, if supported)."""

    name = PurePosixPath(path).name.lower()
    if name == "package.json":
        return "npm", parse_package_json
    if name.endswith("requirements.txt"):
        return "PyPI", parse_requirements
    if name == "pyproject.toml":
        return "PyPI", parse_pyproject
    if name == "pipfile":
        return "PyPI", parse_pipfile
    return None


def extract_packages(declarations: Iterable[DependencyDeclaration]) -> Dict[Ecosystem, List[str]]:
    """패키지 이름 추출(Deduplicated, sorted package names per ecosystem).

    Unknown formats are ignored and malformed manifests are skipped with a
    warning; neither fails the run.
    """

    collected: Dict[Ecosystem, Set[str]] = {"npm": set(), "PyPI": set()}
    for declaration in declarations:
        resolved = resolve_parser(declaration.path)
        if resolved is None:
            continue
        ecosystem, parser = resolved
        try:
            names = parser(declaration.content)
        except (ValueError, TypeError, AttributeError) as exc:
            logger.warning("매니페스트 파싱 실패, 건너뜀(Skipping malformed manifest %s): %s", declaration.path, exc)
            continue
        collected[ecosystem].update(name for name in names if name)

    return {ecosystem: sorted(names) for ecosystem, names in collected.items()}
