"""HTTP client for NuGet v3 feeds.

Protocol docs: https://learn.microsoft.com/nuget/api/overview
Resources used from the service index:
  - RegistrationsBaseUrl   -> version list + dependency groups
  - PackageBaseAddress     -> flat container .nupkg download
"""

from __future__ import annotations

import contextlib
import io
import logging
import shutil
import tempfile
import zipfile
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from urllib.parse import quote as urlquote

import httpx

from dotget.errors import RegistryError, RegistryTimeoutError
from dotget.models import DependencyGroup, PackageMetadata

logger = logging.getLogger(__name__)

_REGISTRATION_TYPES = (
    "RegistrationsBaseUrl/3.6.0",
    "RegistrationsBaseUrl/3.4.0",
    "RegistrationsBaseUrl/3.0.0-rc",
    "RegistrationsBaseUrl",
)
_PACKAGE_BASE_TYPES = ("PackageBaseAddress/3.0.0",)

# Files NuGet itself writes next to package content; not part of the package.
_NUPKG_METADATA_PREFIXES = ("_rels/", "package/", "[Content_Types].xml")


@dataclass
class NuGetClient:
    """Async client for a NuGet v3 feed."""

    http: httpx.AsyncClient
    feed_url: str
    _resources: dict[str, str] | None = field(default=None, init=False, repr=False)

    async def search_metadata(
        self,
        package_id: str,
        *,
        include_prerelease: bool = True,
        include_unlisted: bool = True,
    ) -> list[PackageMetadata]:
        """List every version of *package_id* with its dependency groups.

        Returns an empty list when the feed does not know the package.
        """
        base = await self._resource(_REGISTRATION_TYPES)
        url = f"{base.rstrip('/')}/{urlquote(package_id.lower(), safe='')}/index.json"
        index = await self._get_json(url, what=f"registration index for '{package_id}'")
        if index is None:
            return []

        results: list[PackageMetadata] = []
        for page in index.get("items", []):
            if not isinstance(page, dict):
                continue
            leaves = page.get("items")
            if leaves is None:
                page_data = await self._get_json(page.get("@id", ""), what="registration page")
                leaves = (page_data or {}).get("items", [])
            for leaf in leaves:
                if not isinstance(leaf, dict):
                    continue
                metadata = self._parse_catalog_entry(leaf.get("catalogEntry", {}))
                if metadata is None:
                    continue
                if not include_unlisted and not metadata.listed:
                    continue
                if not include_prerelease and "-" in metadata.version:
                    continue
                results.append(metadata)

        logger.debug("Feed returned %d versions of %s", len(results), package_id)
        return results

    async def restore(self, package_id: str, version: str, cache_root: Path) -> bool:
        """Download and extract ``package_id`` ``version`` into *cache_root*.

        An already extracted package directory counts as restored.
        Returns False when the download or extraction fails.
        """
        lower_id, lower_version = package_id.lower(), version.lower()
        target = Path(cache_root) / lower_id / lower_version
        if target.is_dir() and any(target.iterdir()):
            logger.debug("Package %s %s already restored at %s", package_id, version, target)
            return True

        base = await self._resource(_PACKAGE_BASE_TYPES)
        url = (
            f"{base.rstrip('/')}/{urlquote(lower_id, safe='')}/{urlquote(lower_version, safe='')}"
            f"/{urlquote(lower_id, safe='')}.{urlquote(lower_version, safe='')}.nupkg"
        )
        try:
            response = await self.http.get(url)
            if response.status_code == 404:
                logger.warning("Package %s %s not found at %s", package_id, version, url)
                return False
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise RegistryTimeoutError(
                f"Timed out downloading {package_id} {version}: {exc}", tool=package_id
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("Failed to download %s %s: %s", package_id, version, exc)
            return False

        try:
            _extract_nupkg(response.content, target)
        except (zipfile.BadZipFile, OSError) as exc:
            logger.warning("Failed to extract %s %s: %s", package_id, version, exc)
            return False
        return True

    # ── Protocol helpers ─────────────────────────────────────────

    async def _resource(self, types: tuple[str, ...]) -> str:
        """Look up a resource URL in the (cached) service index."""
        if self._resources is None:
            index = await self._get_json(self.feed_url, what="service index")
            if index is None:
                raise RegistryError(f"Feed {self.feed_url} has no service index.")
            resources: dict[str, str] = {}
            for resource in index.get("resources", []):
                rtype, rid = resource.get("@type"), resource.get("@id")
                if isinstance(rtype, str) and isinstance(rid, str):
                    resources.setdefault(rtype, rid)
            self._resources = resources

        for rtype in types:
            if rtype in self._resources:
                return self._resources[rtype]
        raise RegistryError(f"Feed {self.feed_url} does not offer any of: {', '.join(types)}")

    async def _get_json(self, url: str, *, what: str) -> dict | None:
        """GET *url* as JSON. 404 -> None."""
        try:
            response = await self.http.get(url)
            if response.status_code == 404:
                return None
            response.raise_for_status()
            body = response.json()
        except httpx.TimeoutException as exc:
            raise RegistryTimeoutError(f"Timed out fetching {what}: {exc}") from exc
        except httpx.HTTPError as exc:
            raise RegistryError(f"Failed to fetch {what} from {url}: {exc}") from exc
        except ValueError as exc:
            raise RegistryError(f"Invalid JSON in {what} from {url}: {exc}") from exc
        if not isinstance(body, dict):
            raise RegistryError(
                f"Expected a JSON object for {what} from {url}, got {type(body).__name__}"
            )
        return body

    @staticmethod
    def _parse_catalog_entry(entry: dict) -> PackageMetadata | None:
        """Parse a registration leaf's catalog entry. Tolerant of missing fields."""
        package_id = entry.get("id")
        version = entry.get("version")
        if not package_id or not version:
            return None

        groups = []
        for group in entry.get("dependencyGroups", []) or []:
            framework = group.get("targetFramework")
            if not framework:
                continue
            deps = [d.get("id", "") for d in group.get("dependencies", []) or [] if d.get("id")]
            groups.append(DependencyGroup(target_framework=framework, dependencies=deps))

        return PackageMetadata(
            id=package_id,
            version=version,
            dependency_groups=groups,
            listed=bool(entry.get("listed", True)),
        )


def _extract_nupkg(content: bytes, target: Path) -> None:
    """Extract a .nupkg into *target* through a sibling temp directory.

    Members with absolute paths or ``..`` segments are skipped.
    """
    target.parent.mkdir(parents=True, exist_ok=True)
    staging = Path(tempfile.mkdtemp(dir=str(target.parent), prefix=f".{target.name}_"))
    try:
        with zipfile.ZipFile(io.BytesIO(content)) as archive:
            for member in archive.infolist():
                name = PurePosixPath(member.filename.replace("\\", "/"))
                if name.is_absolute() or ".." in name.parts:
                    logger.warning("Skipping unsafe archive member %s", member.filename)
                    continue
                if member.is_dir() or member.filename.startswith(_NUPKG_METADATA_PREFIXES):
                    continue
                destination = staging.joinpath(*name.parts)
                destination.parent.mkdir(parents=True, exist_ok=True)
                with archive.open(member) as src, open(destination, "wb") as dst:
                    shutil.copyfileobj(src, dst)
        if target.exists():
            shutil.rmtree(target)
        staging.rename(target)
        staging = None
    finally:
        if staging is not None:
            with contextlib.suppress(OSError):
                shutil.rmtree(staging)
