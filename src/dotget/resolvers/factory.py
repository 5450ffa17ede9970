"""Pick the resolver backend that claims a source string."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import httpx

from dotget.config.settings import Settings
from dotget.errors import NoResolverError
from dotget.models import Options
from dotget.registry.base import PackageRegistryPort
from dotget.registry.client import NuGetClient
from dotget.resolvers.base import Resolver
from dotget.resolvers.local import LocalPathResolver
from dotget.resolvers.nuget import NuGetPackageResolver

ResolverBuilder = Callable[[Settings, PackageRegistryPort, Options], Resolver]

# Priority order. Claim rules must not overlap.
_RESOLVERS: tuple[ResolverBuilder, ...] = (
    lambda settings, registry, options: NuGetPackageResolver(settings, registry, options),
    lambda settings, _registry, options: LocalPathResolver(settings, options),
)


@dataclass(frozen=True, slots=True)
class ResolverFactory:
    """Builds resolver backends for one command invocation.

    When *http* is set, a ``feed`` option points the NuGet backend at a
    different feed than the configured one.
    """

    settings: Settings
    registry: PackageRegistryPort
    http: httpx.AsyncClient | None = None

    def resolvers(self, options: Options | None = None) -> list[Resolver]:
        """Instantiate every registered backend, in priority order."""
        opts = dict(options or {})
        registry = self._registry_for(opts.get("feed", ""))
        return [build(self.settings, registry, opts) for build in _RESOLVERS]

    def get_resolver(self, tool: str, options: Options | None = None) -> Resolver:
        """Return the first backend whose ``can_resolve(tool)`` is true.

        Raises:
            NoResolverError: If no backend claims *tool*.
        """
        for resolver in self.resolvers(options):
            if resolver.can_resolve(tool):
                return resolver
        raise NoResolverError(f"No resolver can handle '{tool}'.")

    def resolver_for_path(self, path: str, options: Options | None = None) -> Resolver | None:
        """Return the backend that produced artifact *path*, if any."""
        for resolver in self.resolvers(options):
            if resolver.did_resolve(path):
                return resolver
        return None

    def _registry_for(self, feed: str) -> PackageRegistryPort:
        if not feed or feed == self.settings.feed_url or self.http is None:
            return self.registry
        return NuGetClient(self.http, feed)


def build_factory(http: httpx.AsyncClient, settings: Settings) -> ResolverFactory:
    """Default wiring: the configured feed over a shared HTTP client."""
    return ResolverFactory(settings, NuGetClient(http, settings.feed_url), http)
