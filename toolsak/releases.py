"""Look up a hosted repository's releases and compare semantic versions."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple
from urllib.parse import quote

import requests

API_URL = "https://api.github.com"
REQUEST_TIMEOUT = 30.0

_HEADERS = {
    "Accept": "application/vnd.github+json",
    "X-GitHub-Api-Version": "2022-11-28",
}

_NUMBER = re.compile(r"0|[1-9][0-9]*")
_IDENTIFIER = re.compile(r"[0-9A-Za-z-]+")
_DIGITS = re.compile(r"[0-9]+")


class ReleaseError(Exception):
    """A release lookup failed: bad input, a network problem or an API error."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class ReleaseAsset:
    """A file attached to a release."""

    name: str = ""
    download_count: int = 0
    size: int = 0
    content_type: str = ""
    browser_download_url: str = ""


@dataclass
class Release:
    """A published release of a repository."""

    tag_name: str = ""
    name: str = ""
    body: str = ""
    prerelease: bool = False
    draft: bool = False
    html_url: str = ""
    published_at: str = ""
    assets: List[ReleaseAsset] = field(default_factory=list)


def _text(payload: dict, key: str) -> str:
    return payload.get(key) or ""


def _parse_asset(payload: Any) -> ReleaseAsset:
    if not isinstance(payload, dict):
        raise ReleaseError("unexpected asset in release payload")
    return ReleaseAsset(
        name=_text(payload, "name"),
        download_count=payload.get("download_count") or 0,
        size=payload.get("size") or 0,
        content_type=_text(payload, "content_type"),
        browser_download_url=_text(payload, "browser_download_url"),
    )


def parse_release(payload: Any) -> Release:
    """Build a Release from a decoded API response; missing fields take empty values."""
    if not isinstance(payload, dict):
        raise ReleaseError("unexpected release payload")
    return Release(
        tag_name=_text(payload, "tag_name"),
        name=_text(payload, "name"),
        body=_text(payload, "body"),
        prerelease=bool(payload.get("prerelease")),
        draft=bool(payload.get("draft")),
        html_url=_text(payload, "html_url"),
        published_at=_text(payload, "published_at"),
        assets=[_parse_asset(asset) for asset in payload.get("assets") or []],
    )


def _repo_url(owner: str, repo: str, suffix: str) -> str:
    if not owner.strip() or not repo.strip():
        raise ReleaseError("owner and repository must not be empty")
    return f"{API_URL}/repos/{quote(owner, safe='')}/{quote(repo, safe='')}/{suffix}"


def _get_json(url: str) -> Any:
    try:
        response = requests.get(url, headers=_HEADERS, timeout=REQUEST_TIMEOUT)
    except requests.RequestException as exc:
        raise ReleaseError(f"request failed: {exc}") from exc

    if not response.ok:
        message = response.reason or "request failed"
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            message = body["message"]
        raise ReleaseError(
            f"GET {url}: {response.status_code} {message}", status_code=response.status_code
        )

    try:
        return response.json()
    except ValueError as exc:
        raise ReleaseError(f"GET {url}: response is not valid JSON") from exc


def get_latest_release(owner: str, repo: str) -> Release:
    """Return the latest published release of owner/repo.

    Raises ReleaseError when the names are empty, the request fails or the
    repository has no release.
    """
    return parse_release(_get_json(_repo_url(owner, repo, "releases/latest")))


def _parse_version(version: str) -> Optional[Tuple[int, int, int, Tuple[str, ...]]]:
    if not version.startswith("v"):
        return None
    rest, plus, build = version[1:].partition("+")
    if plus and not all(_IDENTIFIER.fullmatch(part) for part in build.split(".")):
        return None
    core, dash, prerelease = rest.partition("-")

    numbers = core.split(".")
    if not 1 <= len(numbers) <= 3:
        return None
    if (plus or dash) and len(numbers) != 3:
        return None
    if not all(_NUMBER.fullmatch(number) for number in numbers):
        return None
    major, minor, patch = (int(n) for n in numbers + ["0"] * (3 - len(numbers)))

    identifiers: Tuple[str, ...] = ()
    if dash:
        identifiers = tuple(prerelease.split("."))
        for ident in identifiers:
            if not _IDENTIFIER.fullmatch(ident):
                return None
            if _DIGITS.fullmatch(ident) and not _NUMBER.fullmatch(ident):
                return None
    return major, minor, patch, identifiers


def is_valid_version(version: str) -> bool:
    """Tell whether version is a semantic version with a leading 'v'.

    The shorthands vMAJOR and vMAJOR.MINOR are accepted without suffixes.
    """
    return _parse_version(version) is not None


def _sign(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def _compare_prerelease(a: Tuple[str, ...], b: Tuple[str, ...]) -> int:
    if a == b:
        return 0
    if not a:
        return 1
    if not b:
        return -1
    for x, y in zip(a, b):
        if x == y:
            continue
        x_num, y_num = x.isdigit(), y.isdigit()
        if x_num and y_num:
            return _sign(int(x), int(y))
        if x_num != y_num:
            return -1 if x_num else 1
        return _sign(x, y)
    return _sign(len(a), len(b))


def compare_versions(a: str, b: str) -> int:
    """Compare two semantic versions, returning -1, 0 or 1.

    Both must carry a leading 'v'. Build metadata is ignored. An invalid
    version is less than any valid one, and two invalid versions are equal.
    """
    pa, pb = _parse_version(a), _parse_version(b)
    if pa is None or pb is None:
        return _sign(pa is not None, pb is not None)
    core = _sign(pa[:3], pb[:3])
    if core:
        return core
    return _compare_prerelease(pa[3], pb[3])


def _with_v(version: str) -> str:
    return version if version.startswith("v") else "v" + version


def is_outdated_release(owner: str, repo: str, version: str) -> bool:
    """Tell whether version is older than the newest tag of owner/repo.

    A missing 'v' prefix is added to both versions before comparing. Any
    failure to fetch the tags, or a repository without tags, gives False.
    """
    try:
        tags = _get_json(_repo_url(owner, repo, "tags"))
    except ReleaseError:
        return False
    if not isinstance(tags, list) or not tags or not isinstance(tags[0], dict):
        return False

    latest = tags[0].get("name") or ""
    if not latest:
        return False

    return compare_versions(_with_v(latest), _with_v(version)) > 0