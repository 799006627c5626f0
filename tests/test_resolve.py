"""
Tests for cmdpack.resolve.declared module.

Tests configuration resolution including:
- Explicit files and glob patterns
- Remote URLs with caching and checksum verification
- Declared and published artifacts
- Undeclared configurations
"""

from __future__ import annotations

import hashlib

import pytest
import requests_mock

from cmdpack.exceptions import ConfigError, ResolutionError

pytestmark = pytest.mark.unit


def _touch(path, text="x"):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


class TestFiles:
    """Tests for file entries."""

    def test_glob_sorted(self, make_resolver, tmp_test_dir):
        """Test that globs resolve to sorted matches."""
        b = _touch(tmp_test_dir / "libs" / "b.jar")
        a = _touch(tmp_test_dir / "libs" / "a.jar")
        _touch(tmp_test_dir / "libs" / "notes.txt")
        resolver = make_resolver({"lib": {"files": ["libs/*.jar"]}})

        assert resolver.resolve("lib") == [a, b]

    def test_glob_without_match_is_empty(self, make_resolver):
        """Test that a glob matching nothing resolves to no files."""
        resolver = make_resolver({"lib": {"files": ["libs/*.jar"]}})

        assert resolver.resolve("lib") == []

    def test_explicit_missing_file_raises(self, make_resolver):
        """Test that a named file that does not exist fails resolution."""
        resolver = make_resolver({"lib": {"files": ["libs/missing.jar"]}})

        with pytest.raises(ResolutionError, match="does not exist"):
            resolver.resolve("lib")

    def test_single_string_entry(self, make_resolver, tmp_test_dir):
        """Test that a bare string is treated as a one-item list."""
        jar = _touch(tmp_test_dir / "a.jar")
        resolver = make_resolver({"lib": {"files": "a.jar"}})

        assert resolver.resolve("lib") == [jar]

    def test_empty_body(self, make_resolver):
        """Test that a configuration declared without fields is empty."""
        resolver = make_resolver({"lib": None})

        assert resolver.has_configuration("lib")
        assert resolver.resolve("lib") == []
        assert resolver.artifacts("lib") == []

    def test_bad_field_type(self, make_resolver):
        """Test that a non-list files value is rejected."""
        resolver = make_resolver({"lib": {"files": 3}})

        with pytest.raises(ConfigError, match="must be a list"):
            resolver.resolve("lib")

    def test_bad_body_type(self, make_resolver):
        """Test that a non-mapping configuration is rejected."""
        with pytest.raises(ConfigError, match="must be a mapping"):
            make_resolver({"lib": ["a.jar"]})


class TestUndeclared:
    """Tests for configurations that are not declared."""

    def test_has_configuration(self, make_resolver):
        """Test membership for declared and undeclared names."""
        resolver = make_resolver({"lib": {}})

        assert resolver.has_configuration("lib")
        assert not resolver.has_configuration("plugins")
        assert resolver.names() == ["lib"]

    def test_resolve_undeclared_raises(self, make_resolver):
        """Test that resolving an unknown configuration fails."""
        with pytest.raises(ResolutionError, match="not declared"):
            make_resolver().resolve("plugins")


class TestArtifacts:
    """Tests for declared and published artifacts."""

    def test_declared_artifacts(self, make_resolver, tmp_test_dir):
        """Test that declared artifacts are returned."""
        jar = _touch(tmp_test_dir / "build" / "libs" / "svc.jar")
        resolver = make_resolver({"runtime": {"artifacts": ["build/libs/svc.jar"]}})

        assert resolver.artifacts("runtime") == [jar]

    def test_missing_declared_artifact_raises(self, make_resolver):
        """Test that a declared artifact must exist."""
        resolver = make_resolver({"runtime": {"artifacts": ["nope.jar"]}})

        with pytest.raises(ResolutionError, match="does not exist"):
            resolver.artifacts("runtime")

    def test_published_artifacts(self, make_resolver, tmp_test_dir):
        """Test that published artifacts make a configuration visible."""
        resolver = make_resolver()
        archive = tmp_test_dir / "svc-1.0.tar.gz"

        resolver.publish("package", archive)
        resolver.publish("package", archive)

        assert resolver.has_configuration("package")
        assert resolver.resolve("package") == []
        assert resolver.artifacts("package") == [archive]


class TestUrls:
    """Tests for remote artifacts."""

    def test_download_into_cache(self, make_resolver, tmp_test_dir):
        """Test that a URL is downloaded below the cache directory."""
        url = "https://repo.example.com/libs/util-2.1.jar"
        resolver = make_resolver({"lib": {"urls": [url]}})

        with requests_mock.Mocker() as m:
            m.get(url, content=b"jar-bytes")
            files = resolver.resolve("lib")

        assert files == [tmp_test_dir / "build" / "cache" / "lib" / "util-2.1.jar"]
        assert files[0].read_bytes() == b"jar-bytes"

    def test_cached_file_reused(self, make_resolver):
        """Test that a cached download is not fetched again."""
        url = "https://repo.example.com/libs/util-2.1.jar"
        data = b"jar-bytes"
        digest = hashlib.sha256(data).hexdigest()
        resolver = make_resolver({"lib": {"urls": [{"url": url, "sha256": digest}]}})

        with requests_mock.Mocker() as m:
            m.get(url, content=data)
            resolver.resolve("lib")
            resolver.resolve("lib")

            assert m.call_count == 1

    def test_stale_cache_redownloaded(self, make_resolver, tmp_test_dir):
        """Test that a cached file with the wrong checksum is replaced."""
        url = "https://repo.example.com/libs/util-2.1.jar"
        data = b"fresh"
        _touch(tmp_test_dir / "build" / "cache" / "lib" / "util-2.1.jar", "stale")
        resolver = make_resolver(
            {"lib": {"urls": [{"url": url, "sha256": hashlib.sha256(data).hexdigest()}]}}
        )

        with requests_mock.Mocker() as m:
            m.get(url, content=data)
            files = resolver.resolve("lib")

        assert files[0].read_bytes() == b"fresh"

    def test_checksum_mismatch_raises(self, make_resolver):
        """Test that a wrong checksum fails resolution."""
        url = "https://repo.example.com/libs/util-2.1.jar"
        resolver = make_resolver({"lib": {"urls": [{"url": url, "sha256": "0" * 64}]}})

        with requests_mock.Mocker() as m:
            m.get(url, content=b"jar-bytes")
            with pytest.raises(ResolutionError, match="sha256 mismatch"):
                resolver.resolve("lib")

    def test_url_mapping_without_url(self, make_resolver):
        """Test that a url entry needs a url."""
        resolver = make_resolver({"lib": {"urls": [{"sha256": "abc"}]}})

        with pytest.raises(ConfigError, match="without 'url'"):
            resolver.resolve("lib")
