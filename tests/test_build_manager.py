"""
Tests for cmdpack.build.manager module.

Tests the assemble stage including:
- Copying configurations into lib/
- Copying resources with token substitution
- Creating folders
- bin/ permissions
- Missing sources and failure wrapping

These are UNIT tests against a temporary project tree.
"""

from __future__ import annotations

import os
import stat

import pytest

from cmdpack.build.manager import (
    _copy_into,
    assemble_package,
    make_bin_executable,
)
from cmdpack.exceptions import ConfigError

# All tests in this file are unit tests (fast, temp dirs only)
pytestmark = pytest.mark.unit

posix_only = pytest.mark.skipif(os.name != "posix", reason="POSIX permissions")


def _write(path, text="x"):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestCopyInto:
    """Tests for copying files and directories."""

    def test_copy_single_file(self, tmp_test_dir):
        """Test that a file lands in the destination under its name."""
        src = _write(tmp_test_dir / "a.jar")
        dest = tmp_test_dir / "out"

        assert _copy_into(src, dest) == 1
        assert (dest / "a.jar").read_text() == "x"

    def test_copy_directory_contents(self, tmp_test_dir):
        """Test that a directory's contents (not the directory) are copied."""
        _write(tmp_test_dir / "res" / "conf" / "app.conf")
        _write(tmp_test_dir / "res" / "README")
        (tmp_test_dir / "res" / "empty").mkdir()
        dest = tmp_test_dir / "out"

        assert _copy_into(tmp_test_dir / "res", dest) == 2
        assert (dest / "conf" / "app.conf").exists()
        assert (dest / "README").exists()
        assert (dest / "empty").is_dir()
        assert not (dest / "res").exists()

    @posix_only
    def test_overwrites_read_only_destination(self, tmp_test_dir):
        """Test that tokens are written over a read-only earlier copy."""
        src = _write(tmp_test_dir / "app.conf", "port=@PORT@\n")
        dest = _write(tmp_test_dir / "out" / "app.conf", "old\n")
        dest.chmod(0o444)

        assert _copy_into(src, tmp_test_dir / "out", {"PORT": "9"}) == 1
        assert dest.read_text() == "port=9\n"

    def test_missing_source_copies_nothing(self, tmp_test_dir):
        """Test that a missing source is not an error."""
        dest = tmp_test_dir / "out"

        assert _copy_into(tmp_test_dir / "nope", dest) == 0
        assert not dest.exists()


class TestMakeBinExecutable:
    """Tests for bin/ permissions."""

    @posix_only
    def test_bin_files_get_ugo_rx(self, tmp_test_dir):
        """Test that files directly in bin/ become ugo+rx."""
        script = _write(tmp_test_dir / "pkg" / "bin" / "run")
        script.chmod(0o600)

        assert make_bin_executable(tmp_test_dir / "pkg") == 1
        assert stat.S_IMODE(script.stat().st_mode) == 0o755

    @posix_only
    def test_nested_bin_and_non_bin(self, tmp_test_dir):
        """Test nested bin/ dirs are included and other files are not."""
        nested = _write(tmp_test_dir / "pkg" / "tools" / "bin" / "helper")
        other = _write(tmp_test_dir / "pkg" / "bin" / "sub" / "deep")
        conf = _write(tmp_test_dir / "pkg" / "conf" / "app.conf")
        for p in (nested, other, conf):
            p.chmod(0o644)

        make_bin_executable(tmp_test_dir / "pkg")

        assert stat.S_IMODE(nested.stat().st_mode) == 0o755
        assert stat.S_IMODE(other.stat().st_mode) == 0o644
        assert stat.S_IMODE(conf.stat().st_mode) == 0o644

    def test_missing_root(self, tmp_test_dir):
        """Test that a missing tree updates nothing."""
        assert make_bin_executable(tmp_test_dir / "nope") == 0


class TestAssemblePackage:
    """Tests for the assemble stage."""

    def test_tokens_substituted_in_resources(
        self, make_convention, make_resolver, tmp_test_dir
    ):
        """Test that resources get tokens replaced and other files are kept."""
        _write(tmp_test_dir / "res" / "app.conf", "port=@PORT@\n")
        _write(tmp_test_dir / "res" / "notes.txt", "no tokens here\n")
        resolved = make_convention(
            {"resources": ["res"], "replacement_tokens": {"PORT": 8080}}
        ).finalize()

        result = assemble_package(resolved, make_resolver())

        staging = resolved.assemble_package_file
        assert result.staging_dir == staging
        assert (staging / "app.conf").read_text() == "port=8080\n"
        assert (staging / "notes.txt").read_text() == "no tokens here\n"
        assert (staging / "logs").is_dir()

    def test_no_tokens_is_plain_copy(self, make_convention, make_resolver, tmp_test_dir):
        """Test that placeholders survive when the token set is empty."""
        _write(tmp_test_dir / "res" / "app.conf", "port=@PORT@\n")
        resolved = make_convention({"resources": ["res"]}).finalize()

        assemble_package(resolved, make_resolver())

        assert (resolved.assemble_package_file / "app.conf").read_text() == (
            "port=@PORT@\n"
        )

    def test_replace_tokens_false(self, make_convention, make_resolver, tmp_test_dir):
        """Test that replace_tokens: false copies verbatim."""
        _write(tmp_test_dir / "doc" / "guide.md", "@PORT@")
        resolved = make_convention(
            {
                "resources": [{"from": "doc", "replace_tokens": False}],
                "replacement_tokens": {"PORT": "1"},
            }
        ).finalize()

        assemble_package(resolved, make_resolver())

        assert (resolved.assemble_package_file / "guide.md").read_text() == "@PORT@"

    def test_replace_tokens_false_as_text(
        self, make_convention, make_resolver, tmp_test_dir
    ):
        """Test that replace_tokens: "false" from a descriptor copies verbatim."""
        _write(tmp_test_dir / "doc" / "guide.md", "@PORT@")
        resolved = make_convention(
            {
                "resources": [{"from": "doc", "replace_tokens": "false"}],
                "replacement_tokens": {"PORT": "1"},
            }
        ).finalize()

        assemble_package(resolved, make_resolver())

        assert (resolved.assemble_package_file / "guide.md").read_text() == "@PORT@"

    @posix_only
    def test_reassemble_over_read_only_files(
        self, make_convention, make_resolver, tmp_test_dir
    ):
        """Test that a second assemble replaces read-only staged files."""
        source = _write(tmp_test_dir / "res" / "ro.conf", "first\n")
        source.chmod(0o444)
        resolved = make_convention({"resources": ["res"]}).finalize()
        assemble_package(resolved, make_resolver())

        source.chmod(0o644)
        source.write_text("second\n", encoding="utf-8")
        source.chmod(0o444)
        assemble_package(resolved, make_resolver())

        staged = resolved.assemble_package_file / "ro.conf"
        assert staged.read_text() == "second\n"
        assert stat.S_IMODE(staged.stat().st_mode) == 0o444

    def test_lib_configuration_and_resources(
        self, make_convention, make_resolver, tmp_test_dir
    ):
        """Test the full layout: lib/, resources, folders."""
        _write(tmp_test_dir / "libs" / "a.jar")
        _write(tmp_test_dir / "libs" / "b.jar")
        _write(tmp_test_dir / "src" / "cmdline" / "resources" / "bin" / "run", "#!/bin/sh\n")
        resolved = make_convention({"folders": ["logs", "tmp"]}).finalize()
        resolver = make_resolver({"lib": {"files": ["libs/*.jar"]}})

        result = assemble_package(resolved, resolver)

        staging = resolved.assemble_package_file
        assert sorted(p.name for p in (staging / "lib").iterdir()) == ["a.jar", "b.jar"]
        assert (staging / "bin" / "run").exists()
        assert (staging / "logs").is_dir()
        assert (staging / "tmp").is_dir()
        assert result.operations == 4
        assert result.files_copied == 3
        if os.name == "posix":
            mode = stat.S_IMODE((staging / "bin" / "run").stat().st_mode)
            assert mode & 0o555 == 0o555

    def test_resources_overwrite_configuration_files(
        self, make_convention, make_resolver, tmp_test_dir
    ):
        """Test that resources copied later win over configuration files."""
        _write(tmp_test_dir / "libs" / "a.jar", "from-config")
        _write(tmp_test_dir / "override" / "lib" / "a.jar", "from-resource")
        resolved = make_convention({"resources": ["override"]}).finalize()
        resolver = make_resolver({"lib": {"files": ["libs/a.jar"]}})

        assemble_package(resolved, resolver)

        assert (resolved.assemble_package_file / "lib" / "a.jar").read_text() == (
            "from-resource"
        )

    def test_missing_resource_directory(self, make_convention, make_resolver):
        """Test that the default resource dir may be absent."""
        resolved = make_convention().finalize()

        result = assemble_package(resolved, make_resolver())

        assert result.files_copied == 0
        assert (resolved.assemble_package_file / "logs").is_dir()

    def test_idempotent_folders(self, make_convention, make_resolver):
        """Test that running twice succeeds and keeps the folders."""
        resolved = make_convention({"folders": ["logs"]}).finalize()

        assemble_package(resolved, make_resolver())
        assemble_package(resolved, make_resolver())

        assert (resolved.assemble_package_file / "logs").is_dir()

    def test_bad_resource_writes_nothing(self, make_convention, make_resolver):
        """Test that a resource without from fails before any write."""
        resolved = make_convention({"resources": [{"into": "x"}]}).finalize()

        with pytest.raises(ConfigError):
            assemble_package(resolved, make_resolver())

        assert not resolved.assemble_package_file.exists()
