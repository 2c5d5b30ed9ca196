import pytest
import requests
import responses

from toolsak.releases import (
    API_URL,
    Release,
    ReleaseAsset,
    ReleaseError,
    compare_versions,
    get_latest_release,
    is_outdated_release,
    is_valid_version,
    parse_release,
)


def latest_url(owner, repo):
    return f"{API_URL}/repos/{owner}/{repo}/releases/latest"


def tags_url(owner, repo):
    return f"{API_URL}/repos/{owner}/{repo}/tags"


@pytest.fixture
def mocked():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


# parse_release


def test_parse_release_full_structure():
    release = parse_release(
        {
            "tag_name": "v1.2.3",
            "name": "Release v1.2.3",
            "body": "Release notes",
            "prerelease": False,
        }
    )
    assert release.tag_name == "v1.2.3"
    assert release.name == "Release v1.2.3"
    assert release.body == "Release notes"
    assert release.prerelease is False


def test_parse_release_with_assets():
    release = parse_release(
        {
            "tag_name": "v2.0.0",
            "assets": [{"name": "binary-linux-amd64", "download_count": 1500}],
        }
    )
    assert release.tag_name == "v2.0.0"
    assert len(release.assets) == 1
    assert release.assets[0] == ReleaseAsset(name="binary-linux-amd64", download_count=1500)


def test_parse_release_missing_fields_are_empty():
    release = parse_release({"tag_name": "v1.0.0", "name": None})
    assert release == Release(tag_name="v1.0.0")
    assert release.name == ""
    assert release.body == ""
    assert release.prerelease is False
    assert release.html_url == ""


def test_parse_release_rejects_non_object():
    with pytest.raises(ReleaseError):
        parse_release(["v1.0.0"])


# get_latest_release


def test_get_latest_release_success(mocked):
    mocked.add(
        responses.GET,
        latest_url("microsoft", "vscode"),
        json={"tag_name": "1.90.0", "name": "May 2024", "html_url": "https://example.com/r"},
    )
    release = get_latest_release("microsoft", "vscode")
    assert release.tag_name == "1.90.0"
    assert release.name == "May 2024"
    assert release.html_url == "https://example.com/r"


@pytest.mark.parametrize(
    "owner, repo",
    [("", "repo"), ("owner", ""), ("", ""), ("   ", "repo"), ("owner", "   ")],
)
def test_get_latest_release_rejects_empty_names(mocked, owner, repo):
    with pytest.raises(ReleaseError):
        get_latest_release(owner, repo)
    assert len(mocked.calls) == 0


def test_get_latest_release_not_found(mocked):
    mocked.add(
        responses.GET,
        latest_url("thisuserdoesnotexist12345", "thisrepodoesnotexist12345"),
        json={"message": "Not Found"},
        status=404,
    )
    with pytest.raises(ReleaseError) as info:
        get_latest_release("thisuserdoesnotexist12345", "thisrepodoesnotexist12345")
    assert info.value.status_code == 404
    assert "Not Found" in str(info.value)


def test_get_latest_release_special_characters_not_found(mocked):
    mocked.add(
        responses.GET,
        latest_url("owner-with-dashes", "repo.with.dots"),
        json={"message": "Not Found"},
        status=404,
    )
    with pytest.raises(ReleaseError) as info:
        get_latest_release("owner-with-dashes", "repo.with.dots")
    assert info.value.status_code == 404


def test_get_latest_release_rate_limited(mocked):
    mocked.add(
        responses.GET,
        latest_url("test-owner", "test-repo"),
        json={"message": "API rate limit exceeded"},
        status=403,
    )
    with pytest.raises(ReleaseError) as info:
        get_latest_release("test-owner", "test-repo")
    assert info.value.status_code == 403
    assert "rate limit" in str(info.value)


def test_get_latest_release_network_error(mocked):
    mocked.add(
        responses.GET,
        latest_url("test-owner", "test-repo"),
        body=requests.ConnectionError("network timeout"),
    )
    with pytest.raises(ReleaseError) as info:
        get_latest_release("test-owner", "test-repo")
    assert info.value.status_code is None


# version handling


@pytest.mark.parametrize(
    "version, valid",
    [
        ("v1.0.0", True),
        ("v1", True),
        ("v1.2", True),
        ("v1.0.0-alpha.1", True),
        ("v1.0.0+build.5", True),
        ("1.0.0", False),
        ("v01.0.0", False),
        ("v1.2-pre", False),
        ("v1.0.0-01", False),
        ("v1.0.0-", False),
        ("v", False),
        ("vrelease1.22.0", False),
    ],
)
def test_is_valid_version(version, valid):
    assert is_valid_version(version) is valid


@pytest.mark.parametrize(
    "a, b, expected",
    [
        ("v1.2.0", "v1.1.0", 1),
        ("v1.1.0", "v1.2.0", -1),
        ("v1.2", "v1.2.0", 0),
        ("v1", "v1.0.0", 0),
        ("v1.0.0-alpha", "v1.0.0", -1),
        ("v1.0.0-alpha", "v1.0.0-alpha.1", -1),
        ("v1.0.0-1", "v1.0.0-alpha", -1),
        ("v1.0.0-beta.2", "v1.0.0-beta.11", -1),
        ("v1.0.0+a", "v1.0.0+b", 0),
        ("v1.10.0", "v1.9.0", 1),
        ("bad", "v1.0.0", -1),
        ("v1.0.0", "bad", 1),
        ("bad", "worse", 0),
    ],
)
def test_compare_versions(a, b, expected):
    assert compare_versions(a, b) == expected


# is_outdated_release


@pytest.mark.parametrize(
    "latest, current, expected",
    [
        ("v1.2.0", "1.1.0", True),
        ("v1.2.0", "v1.1.0", True),
        ("v1.2.0", "1.2.0", False),
        ("v1.2.0", "1.3.0", False),
        ("1.2.0", "1.1.0", True),
        ("1.2.0", "v1.1.0", True),
        ("v1.2.3", "v1.2.2", True),
        ("v2.0.0", "v1.9.9", True),
    ],
)
def test_is_outdated_release_version_comparison(mocked, latest, current, expected):
    mocked.add(
        responses.GET,
        tags_url("owner", "repo"),
        json=[{"name": latest}, {"name": "v0.0.1"}],
    )
    assert is_outdated_release("owner", "repo", current) is expected


def test_is_outdated_release_repository_not_found(mocked):
    mocked.add(
        responses.GET,
        tags_url("nonexistent-owner", "nonexistent-repo"),
        json={"message": "Not Found"},
        status=404,
    )
    assert is_outdated_release("nonexistent-owner", "nonexistent-repo", "1.0.0") is False


def test_is_outdated_release_no_tags(mocked):
    mocked.add(responses.GET, tags_url("owner", "repo"), json=[])
    assert is_outdated_release("owner", "repo", "1.0.0") is False


def test_is_outdated_release_empty_tag_name(mocked):
    mocked.add(responses.GET, tags_url("owner", "repo"), json=[{"name": ""}])
    assert is_outdated_release("owner", "repo", "1.0.0") is False


def test_is_outdated_release_network_error(mocked):
    mocked.add(
        responses.GET,
        tags_url("owner", "repo"),
        body=requests.ConnectionError("network timeout"),
    )
    assert is_outdated_release("owner", "repo", "1.0.0") is False


@pytest.mark.parametrize("version", ["", "invalid-version"])
def test_is_outdated_release_non_semver_tags(mocked, version):
    mocked.add(responses.GET, tags_url("owner", "repo"), json=[{"name": "release1.22.0"}])
    assert is_outdated_release("owner", "repo", version) is False


def test_is_outdated_release_old_version_is_outdated(mocked):
    mocked.add(responses.GET, tags_url("someone", "mediasim"), json=[{"name": "v2.3.0"}])
    assert is_outdated_release("someone", "mediasim", "1.0.0") is True


def test_is_outdated_release_empty_owner_without_request(mocked):
    assert is_outdated_release("", "repo", "1.0.0") is False
    assert len(mocked.calls) == 0