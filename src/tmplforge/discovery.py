"""
tmplforge.discovery - Template Discovery
========================================

Finds template files under a root directory and turns them into
compile jobs. The order returned here is the order of the final module,
so discovery always sorts: filesystem listing order differs between
platforms and runs.

Usage Example
-------------
>>> from tmplforge.discovery import derive_name
>>> derive_name(Path("/t"), Path("/t/a/b/c.hbs"), namespace="bam")
'bam/a/b/c'
"""

from __future__ import annotations

import os
from pathlib import Path, PurePosixPath

from tmplforge.exceptions import DiscoveryError
from tmplforge.logs import get_logger
from tmplforge.models import CompileOptions, TemplateJob


logger = get_logger(__name__)


# =============================================================================
# File Discovery
# =============================================================================

def discover_templates(
    root: Path,
    extension: str = ".hbs",
    follow_symlinks: bool = True,
) -> list[Path]:
    """
    Recursively list template files under ``root``.

    Parameters
    ----------
    root : Path
        Template directory. Relative paths are resolved against the
        current working directory.

    extension : str
        File suffix to match, including the leading dot.

    follow_symlinks : bool
        Descend into symlinked directories. A directory that links back
        to one of its own ancestors is skipped, so cycles terminate.

    Returns
    -------
    list[Path]
        Absolute file paths, sorted by their POSIX path relative to root.

    Raises
    ------
    DiscoveryError
        If root is missing, is not a directory, or the walk fails.
    """
    root = Path(root).absolute()

    if not root.exists():
        raise DiscoveryError(f"Template directory '{root}' does not exist.")
    if not root.is_dir():
        raise DiscoveryError(f"Template path '{root}' is not a directory.")

    def on_error(error: OSError) -> None:
        raise DiscoveryError(f"Error walking template directory: {error}") from error

    found: list[Path] = []
    # Real paths of each walked directory and its ancestors
    lineage: dict[str, frozenset[str]] = {}

    for dirpath, dirnames, filenames in os.walk(
        root, onerror=on_error, followlinks=follow_symlinks
    ):
        ancestors = lineage.pop(dirpath, frozenset()) | {os.path.realpath(dirpath)}

        # A directory already on the current path is a cycle; siblings
        # that alias each other are both walked.
        dirnames.sort()
        kept = []
        for dirname in dirnames:
            child = os.path.join(dirpath, dirname)
            if os.path.realpath(child) in ancestors:
                logger.debug("skipping symlink cycle at %s", child)
                continue
            lineage[child] = ancestors
            kept.append(dirname)
        dirnames[:] = kept

        for filename in filenames:
            if filename.endswith(extension):
                found.append(Path(dirpath) / filename)

    found.sort(key=lambda path: path.relative_to(root).as_posix())
    logger.debug("found %d templates under %s", len(found), root)
    return found


# =============================================================================
# Name Derivation
# =============================================================================

def derive_name(root: Path, path: Path, namespace: str = "") -> str:
    """
    Derive the logical template name from its path.

    The name is the POSIX path relative to ``root`` with the last
    extension removed, prefixed with ``namespace/`` when a namespace is
    given.

    Examples
    --------
    >>> derive_name(Path("/t"), Path("/t/a/b/c.hbs"))
    'a/b/c'
    >>> derive_name(Path("/t"), Path("/t/a/b/c.hbs"), namespace="bam")
    'bam/a/b/c'
    """
    relative = PurePosixPath(Path(path).relative_to(root).as_posix())
    name = str(relative.with_suffix(""))
    namespace = namespace.strip("/")
    return f"{namespace}/{name}" if namespace else name


def build_jobs(root: Path, options: CompileOptions | None = None) -> list[TemplateJob]:
    """
    Discover templates and create one job per file, in sorted order.

    Parameters
    ----------
    root : Path
        Template directory.

    options : CompileOptions | None
        Supplies the extension, symlink policy and namespace.

    Returns
    -------
    list[TemplateJob]
        Jobs in the same order as ``discover_templates``.
    """
    options = options or CompileOptions()
    root = Path(root).absolute()
    paths = discover_templates(
        root,
        extension=options.extension,
        follow_symlinks=options.follow_symlinks,
    )
    return [
        TemplateJob(source_path=path, name=derive_name(root, path, options.namespace))
        for path in paths
    ]
