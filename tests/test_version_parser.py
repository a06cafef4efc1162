from verwatch.services.versioning import Opaque, Semantic, clean_version, parse_version


def _triple(value: str) -> tuple[int, int, int]:
    parsed = parse_version(value)
    assert isinstance(parsed, Semantic)
    return parsed.major, parsed.minor, parsed.patch


def test_clean_version_strips_whitespace_and_one_prefix():
    assert clean_version("  v1.2.3 ") == "1.2.3"
    assert clean_version("V2.0.0") == "2.0.0"
    assert clean_version("vv1.0.0") == "v1.0.0"


def test_strict_and_truncated_versions_are_semantic():
    assert _triple("v1.2.3") == (1, 2, 3)
    assert _triple("1.2") == (1, 2, 0)
    assert _triple("5") == (5, 0, 0)


def test_prerelease_is_kept():
    parsed = parse_version("1.4.0-rc.1")
    assert isinstance(parsed, Semantic)
    assert parsed.prerelease == "rc.1"
    assert parsed.is_prerelease


def test_build_suffixes_fall_back_to_components():
    assert _triple("1.2.3_1") == (1, 2, 3)
    assert _triple("1.2.3.4") == (1, 2, 3)
    assert _triple("3.11.2rc1") == (3, 11, 2)


def test_date_like_and_free_text_versions_are_opaque():
    assert parse_version("2024.01.15") == Opaque("2024.01.15")
    assert parse_version("2024-01-15") == Opaque("2024-01-15")
    assert parse_version("latest") == Opaque("latest")
    assert parse_version("") == Opaque("")
