"""Repolyzer - GitHub repository inventory and health analysis.

Repolyzer fetches a repository's metadata, commit history, contributors,
languages and file tree from the GitHub API, then derives:

- a dependency inventory parsed from package manifests (npm, Go modules,
  Python requirements, Cargo, Bundler)
- health, bus factor and maturity metrics

Reports are exported as Markdown or JSON.
"""

__version__ = "0.1.0"
__author__ = "Repolyzer Contributors"
