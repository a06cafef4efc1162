from verwatch.services.versioning import Comparison, classify_change, compare_versions, has_update, is_prerelease


def test_semantic_ordering_is_numeric():
    assert compare_versions("1.10.0", "1.9.0") is Comparison.GREATER
    assert compare_versions("1.0.0", "1.0.1") is Comparison.LESS
    assert compare_versions("v2.0.0", "2.0.0") is Comparison.EQUAL
    assert compare_versions("2.0", "2.0.0") is Comparison.EQUAL


def test_prerelease_sorts_before_release():
    assert compare_versions("1.0.0-rc.1", "1.0.0") is Comparison.LESS
    assert compare_versions("1.0.0", "1.0.0-beta.2") is Comparison.GREATER


def test_missing_local_version_is_unknown():
    assert compare_versions("1.0.0", None) is Comparison.UNKNOWN
    assert has_update("1.0.0", None) is False


def test_opaque_versions_compare_by_text():
    assert compare_versions("nightly-2024", "nightly-2024") is Comparison.EQUAL
    assert compare_versions("nightly-2024", "nightly-2023") is Comparison.GREATER
    assert compare_versions("2024.01.15", "1.2.3") is Comparison.GREATER


def test_has_update_only_for_newer_remote():
    assert has_update("1.10.0", "1.9.0")
    assert not has_update("1.9.0", "1.10.0")
    assert not has_update("v1.9.0", "1.9.0")


def test_is_prerelease():
    assert is_prerelease("1.0.0-beta.1")
    assert not is_prerelease("1.0.0")
    assert is_prerelease("nightly-build")
    assert not is_prerelease("stable")


def test_classify_change_uses_highest_component():
    assert classify_change("1.2.3", "2.0.0") == "major"
    assert classify_change("1.2.3", "1.3.0") == "minor"
    assert classify_change("1.2.3", "1.2.4") == "patch"
    assert classify_change("1.2.3", "1.3.0-rc.1") == "minor"


def test_classify_change_ignores_downgrades_and_opaque():
    assert classify_change("2.0.0", "1.9.0") is None
    assert classify_change("1.0.0", "1.0.0") is None
    assert classify_change("latest", "1.0.0") is None
