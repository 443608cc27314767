"""
Tests for semantic API version ordering.
"""
import pytest

from stac_search.errors import InvalidParameter
from stac_search.version import APIVersion, SEARCH_PATH_CHANGE


class TestParse:
    """Tests for APIVersion.parse."""

    def test_full_version(self):
        """Test a plain major.minor.patch string."""
        assert APIVersion.parse("0.9.0") == APIVersion(0, 9, 0)

    def test_short_versions_fill_zeros(self):
        """Test that missing minor/patch default to zero."""
        assert APIVersion.parse("1") == APIVersion(1, 0, 0)
        assert APIVersion.parse("v1.0") == APIVersion(1, 0, 0)

    def test_prerelease(self):
        """Test that the pre-release tag is kept."""
        version = APIVersion.parse("1.0.0-rc.1")
        assert version.prerelease == "rc.1"
        assert str(version) == "1.0.0-rc.1"

    def test_parse_passthrough(self):
        """Test that parsing an APIVersion returns it unchanged."""
        version = APIVersion(0, 8, 1)
        assert APIVersion.parse(version) is version

    @pytest.mark.parametrize("value", ["", "abc", "0.9.x", "1.2.3.4", "01.0.0"])
    def test_invalid_strings(self, value):
        """Test that malformed versions are rejected."""
        with pytest.raises(InvalidParameter) as exc_info:
            APIVersion.parse(value)
        assert exc_info.value.field == "api_version"

    def test_non_string(self):
        """Test that non-string input is rejected."""
        with pytest.raises(InvalidParameter):
            APIVersion.parse(0.9)


class TestOrdering:
    """Tests for semantic (not lexicographic) ordering."""

    def test_numeric_minor_comparison(self):
        """Test that 0.10.0 sorts after 0.9.0."""
        assert APIVersion.parse("0.10.0") > APIVersion.parse("0.9.0")

    def test_compare_with_string(self):
        """Test comparison against a version string."""
        assert APIVersion.parse("0.8.1") < "0.9.0"
        assert APIVersion.parse("0.9.0") == "0.9.0"

    def test_prerelease_before_release(self):
        """Test that a pre-release sorts before its release."""
        assert APIVersion.parse("1.0.0-beta.2") < APIVersion.parse("1.0.0")
        assert APIVersion.parse("1.0.0-beta.2") > APIVersion.parse("0.9.0")

    def test_prerelease_identifiers(self):
        """Test numeric pre-release identifiers compare numerically."""
        assert APIVersion.parse("1.0.0-rc.2") < APIVersion.parse("1.0.0-rc.10")
        assert APIVersion.parse("1.0.0-alpha") < APIVersion.parse("1.0.0-beta")

    def test_sorting(self):
        """Test sorting a mixed list of versions."""
        versions = [APIVersion.parse(v) for v in ["1.0.0", "0.10.0", "0.8.1", "0.9.0"]]
        assert [str(v) for v in sorted(versions)] == ["0.8.1", "0.9.0", "0.10.0", "1.0.0"]

    def test_hashable(self):
        """Test that equal versions hash equally."""
        assert len({APIVersion.parse("v1.0"), APIVersion.parse("1.0.0")}) == 1

    def test_search_path_change_boundary(self):
        """Test the /search boundary constant."""
        assert str(SEARCH_PATH_CHANGE) == "0.9.0"
