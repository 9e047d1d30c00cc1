"""
Tests for tmplforge.discovery
=============================

Test Organization
-----------------
- TestDiscoverTemplates: Tests for the recursive file walk
- TestDeriveName: Tests for template name derivation
- TestBuildJobs: Tests for job list construction
"""

import os
from collections.abc import Callable
from pathlib import Path

import pytest

from tmplforge.discovery import build_jobs, derive_name, discover_templates
from tmplforge.exceptions import DiscoveryError
from tmplforge.models import CompileOptions


# =============================================================================
# Discovery Tests
# =============================================================================

class TestDiscoverTemplates:
    """Tests for discover_templates function."""

    def test_finds_nested_templates(self, make_templates: Callable) -> None:
        """Test that templates in subdirectories are found."""
        root = make_templates({"a.hbs": "", "x/y/z.hbs": ""})

        found = discover_templates(root)

        assert [p.relative_to(root).as_posix() for p in found] == ["a.hbs", "x/y/z.hbs"]

    def test_returns_absolute_paths(self, make_templates: Callable) -> None:
        """Test that discovered paths are absolute."""
        root = make_templates({"a.hbs": ""})

        assert all(p.is_absolute() for p in discover_templates(root))

    def test_sorted_by_relative_path(self, make_templates: Callable) -> None:
        """Test that output order is lexicographic, not listing order."""
        root = make_templates({"c.hbs": "", "a/z.hbs": "", "b.hbs": "", "a/b.hbs": ""})

        found = discover_templates(root)

        assert [p.relative_to(root).as_posix() for p in found] == [
            "a/b.hbs", "a/z.hbs", "b.hbs", "c.hbs",
        ]

    def test_ignores_other_extensions(self, make_templates: Callable) -> None:
        """Test that non-template files are skipped."""
        root = make_templates({"a.hbs": "", "README.md": "", "b.hbs.bak": ""})

        found = discover_templates(root)

        assert [p.name for p in found] == ["a.hbs"]

    def test_custom_extension(self, make_templates: Callable) -> None:
        """Test discovery with a different extension."""
        root = make_templates({"a.handlebars": "", "b.hbs": ""})

        found = discover_templates(root, extension=".handlebars")

        assert [p.name for p in found] == ["a.handlebars"]

    def test_empty_directory(self, make_templates: Callable) -> None:
        """Test that an empty directory yields no templates."""
        root = make_templates({})

        assert discover_templates(root) == []

    def test_follows_directory_symlinks(
        self, make_templates: Callable, tmp_path: Path
    ) -> None:
        """Test that symlinked directories are walked."""
        root = make_templates({"a.hbs": ""})
        shared = make_templates({"x.hbs": ""}, root_name="shared")
        (root / "linked").symlink_to(shared, target_is_directory=True)

        found = discover_templates(root)

        assert [p.relative_to(root).as_posix() for p in found] == ["a.hbs", "linked/x.hbs"]

    def test_symlinks_not_followed_when_disabled(
        self, make_templates: Callable
    ) -> None:
        """Test that follow_symlinks=False skips symlinked directories."""
        root = make_templates({"a.hbs": ""})
        shared = make_templates({"x.hbs": ""}, root_name="shared")
        (root / "linked").symlink_to(shared, target_is_directory=True)

        found = discover_templates(root, follow_symlinks=False)

        assert [p.name for p in found] == ["a.hbs"]

    def test_symlink_cycle_terminates(self, make_templates: Callable) -> None:
        """Test that a directory symlinked into itself is walked once."""
        root = make_templates({"a/b.hbs": ""})
        (root / "a" / "loop").symlink_to(root / "a", target_is_directory=True)

        found = discover_templates(root)

        assert [p.relative_to(root).as_posix() for p in found] == ["a/b.hbs"]

    def test_alias_and_real_directory_both_walked(self, make_templates: Callable) -> None:
        """Test that a sibling symlink to a directory lists both paths."""
        root = make_templates({"real/x.hbs": ""})
        (root / "alias").symlink_to(root / "real", target_is_directory=True)

        found = discover_templates(root)

        assert [p.relative_to(root).as_posix() for p in found] == ["alias/x.hbs", "real/x.hbs"]

    def test_alias_names_are_reproducible(self, make_templates: Callable) -> None:
        """Test that aliased templates get the same names on every run."""
        root = make_templates({"real/x.hbs": "", "real/sub/y.hbs": ""})
        (root / "alias").symlink_to(root / "real", target_is_directory=True)
        (root / "zalias").symlink_to(root / "real", target_is_directory=True)

        first = [job.name for job in build_jobs(root)]
        second = [job.name for job in build_jobs(root)]

        assert first == second == [
            "alias/sub/y", "alias/x", "real/sub/y", "real/x", "zalias/sub/y", "zalias/x",
        ]

    def test_cycle_below_alias_terminates(self, make_templates: Callable) -> None:
        """Test that a cycle reached through an alias is still cut."""
        root = make_templates({"real/x.hbs": ""})
        (root / "real" / "up").symlink_to(root / "real", target_is_directory=True)
        (root / "alias").symlink_to(root / "real", target_is_directory=True)

        found = discover_templates(root)

        assert [p.relative_to(root).as_posix() for p in found] == ["alias/x.hbs", "real/x.hbs"]

    def test_missing_root_raises(self, tmp_path: Path) -> None:
        """Test that a missing directory raises DiscoveryError."""
        with pytest.raises(DiscoveryError, match="does not exist"):
            discover_templates(tmp_path / "missing")

    def test_file_root_raises(self, tmp_path: Path) -> None:
        """Test that a file instead of a directory raises DiscoveryError."""
        path = tmp_path / "a.hbs"
        path.write_text("")

        with pytest.raises(DiscoveryError, match="not a directory"):
            discover_templates(path)

    @pytest.mark.skipif(
        not hasattr(os, "geteuid") or os.geteuid() == 0,
        reason="permission checks do not apply to root",
    )
    def test_unreadable_directory_raises(self, make_templates: Callable) -> None:
        """Test that permission errors surface as DiscoveryError."""
        root = make_templates({"locked/a.hbs": ""})
        locked = root / "locked"
        locked.chmod(0)

        try:
            with pytest.raises(DiscoveryError):
                discover_templates(root)
        finally:
            locked.chmod(0o755)


# =============================================================================
# Name Derivation Tests
# =============================================================================

class TestDeriveName:
    """Tests for derive_name function."""

    def test_nested_path_without_namespace(self) -> None:
        """Test <root>/a/b/c.hbs becomes a/b/c."""
        assert derive_name(Path("/t"), Path("/t/a/b/c.hbs")) == "a/b/c"

    def test_nested_path_with_namespace(self) -> None:
        """Test namespace bam gives bam/a/b/c."""
        assert derive_name(Path("/t"), Path("/t/a/b/c.hbs"), namespace="bam") == "bam/a/b/c"

    def test_only_last_extension_removed(self) -> None:
        """Test that inner dots are kept."""
        assert derive_name(Path("/t"), Path("/t/mail.en.hbs")) == "mail.en"

    def test_namespace_slashes_ignored(self) -> None:
        """Test that a trailing slash on the namespace is not doubled."""
        assert derive_name(Path("/t"), Path("/t/a.hbs"), namespace="bam/") == "bam/a"


# =============================================================================
# Job Construction Tests
# =============================================================================

class TestBuildJobs:
    """Tests for build_jobs function."""

    def test_jobs_follow_discovery_order(self, make_templates: Callable) -> None:
        """Test that jobs are named and ordered like discovery."""
        root = make_templates({"b.hbs": "", "a/c.hbs": ""})

        jobs = build_jobs(root, CompileOptions(namespace="bam"))

        assert [job.name for job in jobs] == ["bam/a/c", "bam/b"]
        assert jobs[0].source_path == root / "a" / "c.hbs"

    def test_default_options(self, make_templates: Callable) -> None:
        """Test build_jobs without explicit options."""
        root = make_templates({"a.hbs": ""})

        assert [job.name for job in build_jobs(root)] == ["a"]

    def test_names_are_unique(self, make_templates: Callable) -> None:
        """Test one job per file with no duplicate names."""
        root = make_templates({f"dir{i}/t{j}.hbs": "" for i in range(3) for j in range(3)})

        names = [job.name for job in build_jobs(root)]

        assert len(names) == 9
        assert len(set(names)) == 9
