"""Entry point for running repolyzer as a module.

Usage:
    python -m repolyzer [command] [options]

Example:
    python -m repolyzer analyze octocat/hello-world --format json
    python -m repolyzer deps octocat/hello-world
"""

from repolyzer.cli import app

if __name__ == "__main__":
    app()
