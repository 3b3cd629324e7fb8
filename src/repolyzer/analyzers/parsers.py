"""Dependency manifest parsers.

One parser per ecosystem, each turning raw manifest content into a list of
Dependency records:
- package.json (npm)
- go.mod (Go modules)
- requirements.txt / Pipfile / pyproject.toml (Python, line-oriented)
- Cargo.toml (Rust)
- Gemfile (Ruby)

Every parser is total: malformed input yields an empty list paired with the
parser's own ecosystem, never an exception. The line-oriented parsers are
deliberately approximate (no TOML or Ruby evaluation) and keep their edge-case
behavior stable, e.g. the Cargo parser keeps inline tables verbatim.
"""

import json
import re
from collections.abc import Callable

from repolyzer.models.dependency import ANY_VERSION, Dependency, DependencyType, Ecosystem

ParseResult = tuple[list[Dependency], Ecosystem]
Parser = Callable[[bytes | str], ParseResult]

NPM_SECTIONS: tuple[tuple[str, DependencyType], ...] = (
    ("dependencies", DependencyType.PRODUCTION),
    ("devDependencies", DependencyType.DEV),
    ("peerDependencies", DependencyType.PEER),
)

_REQUIREMENT_VERSIONED_RE = re.compile(r"^([a-zA-Z0-9_-]+)\s*([=<>!~]+.*)$")
_REQUIREMENT_BARE_RE = re.compile(r"^([a-zA-Z0-9_-]+)\s*$")
_GEM_RE = re.compile(r"""gem\s+['"]([^'"]+)['"](?:\s*,\s*['"]([^'"]+)['"])?""")

_GO_INDIRECT_MARKER = "// indirect"


def _to_text(content: bytes | str) -> str:
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    return content


# =========================================================================
# package.json (npm)
# =========================================================================


def parse_package_json(content: bytes | str) -> ParseResult:
    """Parse dependencies, devDependencies and peerDependencies.

    Each section must map names to version strings. A section of any other
    shape, or a single non-string version, rejects the whole manifest; a null
    or absent section is treated as empty. Versions are whitespace-trimmed
    only. The merged list is sorted by name; the sort is stable, so a name
    declared in several sections keeps the production/dev/peer order.
    """
    try:
        data = json.loads(content)
    except (ValueError, RecursionError):
        return [], Ecosystem.NPM

    if not isinstance(data, dict):
        return [], Ecosystem.NPM

    deps: list[Dependency] = []
    for section, dep_type in NPM_SECTIONS:
        entries = data.get(section)
        if entries is None:
            continue
        if not isinstance(entries, dict):
            return [], Ecosystem.NPM
        for name, version in entries.items():
            if not isinstance(version, str):
                return [], Ecosystem.NPM
            if name:
                deps.append(Dependency(name=name, version=version.strip(), type=dep_type))

    deps.sort(key=lambda dep: dep.name)
    return deps, Ecosystem.NPM


# =========================================================================
# go.mod (Go)
# =========================================================================


def _go_dependency_type(line: str) -> DependencyType:
    if _GO_INDIRECT_MARKER in line:
        return DependencyType.INDIRECT
    return DependencyType.PRODUCTION


def parse_go_mod(content: bytes | str) -> ParseResult:
    """Parse single-line ``require`` directives and ``require ( ... )`` blocks."""
    deps: list[Dependency] = []
    in_require = False

    for raw_line in _to_text(content).splitlines():
        line = raw_line.strip()

        if line.startswith("require ("):
            in_require = True
            continue
        if line == ")":
            in_require = False
            continue

        if line.startswith("require ") and "(" not in line:
            parts = line.split()
            if len(parts) >= 3:
                deps.append(
                    Dependency(name=parts[1], version=parts[2], type=_go_dependency_type(line))
                )
            continue

        if in_require and line and not line.startswith("//"):
            parts = line.split()
            if len(parts) >= 2:
                deps.append(
                    Dependency(name=parts[0], version=parts[1], type=_go_dependency_type(line))
                )

    return deps, Ecosystem.GO


# =========================================================================
# requirements.txt (Python)
# =========================================================================


def parse_requirements_txt(content: bytes | str) -> ParseResult:
    """Parse ``name<constraint>`` and bare ``name`` lines.

    Comments (``#``) and pip options (``-r``, ``-e``, ``--index-url``...) are
    skipped. Lines matching neither shape, such as ``pkg[extra]>=1`` or URLs,
    are ignored.
    """
    deps: list[Dependency] = []

    for raw_line in _to_text(content).splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or line.startswith("-"):
            continue

        match = _REQUIREMENT_VERSIONED_RE.match(line)
        if match:
            deps.append(Dependency(name=match.group(1), version=match.group(2).strip()))
            continue

        match = _REQUIREMENT_BARE_RE.match(line)
        if match:
            deps.append(Dependency(name=match.group(1), version=ANY_VERSION))

    return deps, Ecosystem.PYTHON


# =========================================================================
# Cargo.toml (Rust)
# =========================================================================


def parse_cargo_toml(content: bytes | str) -> ParseResult:
    """Parse ``[dependencies]`` and ``[dev-dependencies]`` tables line by line.

    The right-hand side of ``name = value`` becomes the version after quote
    stripping, so ``serde = { version = "1", features = ["derive"] }`` keeps the
    whole inline table as its version string.
    """
    deps: list[Dependency] = []
    in_deps = False
    in_dev_deps = False

    for raw_line in _to_text(content).splitlines():
        line = raw_line.strip()

        if line == "[dependencies]":
            in_deps, in_dev_deps = True, False
            continue
        if line == "[dev-dependencies]":
            in_deps, in_dev_deps = False, True
            continue
        if line.startswith("["):
            in_deps = in_dev_deps = False
            continue

        if (in_deps or in_dev_deps) and "=" in line:
            name, value = line.split("=", 1)
            name = name.strip()
            if not name:
                continue
            dep_type = DependencyType.DEV if in_dev_deps else DependencyType.PRODUCTION
            deps.append(Dependency(name=name, version=value.strip().strip("\"'"), type=dep_type))

    return deps, Ecosystem.RUST


# =========================================================================
# Gemfile (Ruby)
# =========================================================================


def parse_gemfile(content: bytes | str) -> ParseResult:
    """Parse ``gem "name"[, "constraint"]`` declarations."""
    deps: list[Dependency] = []

    for raw_line in _to_text(content).splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        match = _GEM_RE.search(line)
        if match:
            deps.append(Dependency(name=match.group(1), version=match.group(2) or ANY_VERSION))

    return deps, Ecosystem.RUBY


PARSERS: dict[Ecosystem, Parser] = {
    Ecosystem.NPM: parse_package_json,
    Ecosystem.GO: parse_go_mod,
    Ecosystem.PYTHON: parse_requirements_txt,
    Ecosystem.RUST: parse_cargo_toml,
    Ecosystem.RUBY: parse_gemfile,
}


def parse_manifest(ecosystem: Ecosystem, content: bytes | str) -> ParseResult:
    """Route manifest content to the parser registered for ``ecosystem``."""
    return PARSERS[ecosystem](content)
