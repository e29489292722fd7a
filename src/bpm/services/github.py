"""GitHub releases provider.

Resolves versions from the releases of github.com/<owner>/<repo> and
downloads release assets.
"""

import functools
import logging
import re
from pathlib import Path

import httpx
import semver
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from bpm.errors import ProviderConfigError, ProviderFetchError
from bpm.models.config import GithubConfig
from bpm.models.package import Package
from bpm.services.provider import PackageProvider
from bpm.utils.http import download_file

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
PROVIDER_KEY = "github.com"
RELEASES_PER_PAGE = 10


class ReleaseAsset(BaseModel):
    """A downloadable file attached to a release."""

    name: str
    browser_download_url: str


class Release(BaseModel):
    """A GitHub release as returned by the REST API.

    Attributes:
        tag_name: The git tag of the release.
        prerelease: Whether the release is marked as a prerelease.
        assets: Files attached to the release.
    """

    tag_name: str
    prerelease: bool = False
    assets: list[ReleaseAsset] = Field(default_factory=list)


def parse_tag(tag: str) -> semver.Version | None:
    """Parse a release tag as a semantic version.

    A leading "v" is ignored and missing minor or patch parts count as 0,
    so "v1", "1.2" and "v1.9.0-hotfix" all parse.

    Returns:
        The parsed version, or None if the tag is not a version.
    """
    text = tag[1:] if tag[:1] in ("v", "V") else tag
    try:
        return semver.Version.parse(text, optional_minor_and_patch=True)
    except ValueError:
        return None


def _compare_tags(a: str, b: str) -> int:
    """Order two tags by semantic version, falling back to string order."""
    version_a = parse_tag(a)
    version_b = parse_tag(b)
    if version_a is None or version_b is None:
        return (a > b) - (a < b)
    return version_a.compare(version_b)


def sort_releases(releases: list[Release]) -> list[Release]:
    """Sort releases ascending by version.

    The sort is stable. Tags that don't parse as versions compare as
    plain strings against their neighbours.

    Args:
        releases: Releases in the order the API returned them.

    Returns:
        A new list, oldest first.
    """
    return sorted(
        releases, key=functools.cmp_to_key(lambda a, b: _compare_tags(a.tag_name, b.tag_name))
    )


def parse_repository(package: Package) -> tuple[str, str]:
    """Split a github.com/<owner>/<repo> locator into owner and repo.

    Raises:
        ProviderConfigError: If the locator does not have that shape.
    """
    parts = package.url.strip("/").split("/")
    if len(parts) < 3 or not parts[1] or not parts[2]:
        raise ProviderConfigError(
            f"url ({package.url}) has not the correct github format (github.com/<owner>/<repo>)"
        )
    return parts[1], parts[2]


def _compile(pattern: str, what: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ProviderConfigError(f"{what} {pattern!r} is not a valid regex: {e}") from e


class GithubProvider(PackageProvider):
    """Provider backed by the GitHub REST API.

    Attributes:
        client: HTTP client pointed at the GitHub API.
    """

    client: httpx.Client

    @classmethod
    def from_config(
        cls, config: GithubConfig, transport: httpx.BaseTransport | None = None
    ) -> "GithubProvider":
        """Build a provider from the github section of the configuration.

        When both username and token are set all requests carry HTTP basic
        auth. A username without a token is reported and ignored.

        Args:
            config: GitHub credentials.
            transport: Optional httpx transport (used by tests).

        Returns:
            A configured GithubProvider.
        """
        auth: tuple[str, str] | None = None
        if config.username:
            if not config.token:
                logger.error("If github username is set a token must be set!")
            else:
                logger.debug("use provided username %s", config.username)
                auth = (config.username, config.token)

        client = httpx.Client(
            base_url=GITHUB_API_URL,
            auth=auth,
            headers={
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            transport=transport,
        )
        return cls(client=client)

    def _get(self, url: str, params: dict[str, int] | None = None) -> httpx.Response:
        try:
            response = self.client.get(url, params=params)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ProviderFetchError(f"cannot get releases: {e}") from e
        remaining = response.headers.get("X-RateLimit-Remaining")
        if remaining is not None:
            logger.debug("github rate limit remaining: %s", remaining)
        return response

    def _parse_releases(self, payload: object) -> list[Release]:
        if not isinstance(payload, list):
            raise ProviderFetchError("unexpected release listing from github")
        try:
            return [Release.model_validate(item) for item in payload]
        except ValidationError as e:
            raise ProviderFetchError(f"unexpected release listing from github: {e}") from e

    def get_latest_release(self, package: Package) -> Release:
        """Find the newest release of a package that passes its filters.

        Pages through the repository's releases. Each page is sorted by
        version and scanned newest first; the first release whose tag matches
        tag_filter and that is not an excluded prerelease wins.

        Args:
            package: The package descriptor.

        Returns:
            The selected release.

        Raises:
            ProviderConfigError: If the locator or tag_filter is invalid, or
                no release qualifies.
            ProviderFetchError: If the listing request fails.
        """
        tag_filter = _compile(package.tag_filter, "tag filter")
        owner, repo = parse_repository(package)

        url: str | None = f"/repos/{owner}/{repo}/releases"
        params: dict[str, int] | None = {"per_page": RELEASES_PER_PAGE, "page": 1}
        while url is not None:
            response = self._get(url, params=params)
            releases = sort_releases(self._parse_releases(response.json()))
            logger.debug("found releases %s", [r.tag_name for r in reversed(releases)])

            for release in reversed(releases):
                if not tag_filter.search(release.tag_name):
                    continue
                if release.prerelease and not package.pre_releases:
                    continue
                return release

            next_link = response.links.get("next")
            url = next_link.get("url") if next_link else None
            # The next link already carries the query string
            params = None

        raise ProviderConfigError(
            f"cannot find a release (TagFilter: {package.tag_filter!r},"
            f" PreReleases: {package.pre_releases})"
        )

    def get_release(self, package: Package, version: str) -> Release:
        """Fetch the release tagged with a given version.

        Raises:
            ProviderConfigError: If the locator is invalid.
            ProviderFetchError: If the request fails.
        """
        owner, repo = parse_repository(package)
        response = self._get(f"/repos/{owner}/{repo}/releases/tags/{version}")
        try:
            return Release.model_validate(response.json())
        except ValidationError as e:
            raise ProviderFetchError(f"unexpected release from github: {e}") from e

    def close(self) -> None:
        self.client.close()

    def get_latest(self, package: Package) -> str:
        return self.get_latest_release(package).tag_name

    def fetch_package(self, package: Package, version: str, cache_dir: Path) -> Path:
        asset_pattern = _compile(package.expand(package.asset_pattern, version), "asset pattern")
        release = self.get_release(package, version)
        logger.debug("search for pattern %s", asset_pattern.pattern)
        for asset in release.assets:
            logger.debug("try asset %s", asset.name)
            if asset_pattern.search(asset.name):
                logger.debug("get asset from %s", asset.browser_download_url)
                return download_file(
                    self.client, asset.browser_download_url, Path(cache_dir) / asset.name
                )

        raise ProviderFetchError(
            f"no matching asset found for pattern {asset_pattern.pattern!r} in {version}"
        )
