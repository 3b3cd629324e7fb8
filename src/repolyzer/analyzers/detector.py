"""Manifest and lock file detection over a repository tree listing.

Matching is on the final path segment only, by exact (case-sensitive) string
equality. No globbing, no directory filtering: a ``package.json`` nested in
``examples/`` counts the same as one at the root.
"""

from collections.abc import Iterable

from repolyzer.models.dependency import Ecosystem, ManifestCandidate, TreeEntry

MANIFEST_FILES: dict[str, Ecosystem] = {
    "package.json": Ecosystem.NPM,
    "go.mod": Ecosystem.GO,
    "requirements.txt": Ecosystem.PYTHON,
    "Pipfile": Ecosystem.PYTHON,
    "pyproject.toml": Ecosystem.PYTHON,
    "Cargo.toml": Ecosystem.RUST,
    "Gemfile": Ecosystem.RUBY,
}

LOCK_FILES: frozenset[str] = frozenset(
    {
        "package-lock.json",
        "yarn.lock",
        "pnpm-lock.yaml",
        "go.sum",
        "Pipfile.lock",
        "poetry.lock",
        "Cargo.lock",
        "Gemfile.lock",
    }
)


def find_dependency_files(tree: Iterable[TreeEntry]) -> list[ManifestCandidate]:
    """Select manifest blobs from a tree listing.

    Args:
        tree: Tree entries in listing order

    Returns:
        Candidates in the same order as the tree
    """
    candidates: list[ManifestCandidate] = []
    for entry in tree:
        if not entry.is_blob:
            continue
        ecosystem = MANIFEST_FILES.get(entry.basename)
        if ecosystem is not None:
            candidates.append(ManifestCandidate(path=entry.path, ecosystem=ecosystem))
    return candidates


def has_lock_file(tree: Iterable[TreeEntry]) -> bool:
    """Return True if any entry's basename is a known lock file."""
    return any(entry.basename in LOCK_FILES for entry in tree)
