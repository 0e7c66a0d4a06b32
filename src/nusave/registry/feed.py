# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

"""
Client for the NuGet V2 feed (OData over Atom). Only the ``FindPackagesById``
function is used: it lists all versions of a package including their
dependencies and download location.
"""

import logging
from urllib.parse import quote
import xml.etree.ElementTree as ET

import requests
from requests.exceptions import RequestException

from ..nuget.package import Dependency, DependencySet, ResolvedPackage
from ..nuget.version import InvalidVersionError, NuGetVersion
from .cache import RegistryCache
from .client import PackageNotFoundError, RegistryClient, RegistryError


logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "https://www.nuget.org/api/v2"

NS = {
    "atom": "http://www.w3.org/2005/Atom",
    "d": "http://schemas.microsoft.com/ado/2007/08/dataservices",
    "m": "http://schemas.microsoft.com/ado/2007/08/dataservices/metadata",
}

# unlisted packages carry this publishing date on V2 feeds
UNLISTED_PUBLISHED_YEAR = "1900"


def parse_dependencies(value: str) -> list[DependencySet]:
    """
    Parse the V2 dependency encoding ``id:range:framework|id:range:framework``
    into one dependency set per target framework. An entry without id (``::net45``)
    declares an empty set for that framework.
    """
    sets: dict[str | None, DependencySet] = {}
    for item in value.split("|"):
        if not item.strip():
            continue
        dep_id, _, rest = item.partition(":")
        spec, _, framework = rest.partition(":")
        framework = framework.strip() or None
        dset = sets.setdefault(framework, DependencySet(target_framework=framework))
        dep_id = dep_id.strip()
        if not dep_id:
            continue
        try:
            dset.dependencies.append(Dependency.parse(dep_id, spec))
        except InvalidVersionError as e:
            logger.warning(f"ignoring dependency {dep_id}: {e}")
    return list(sets.values())


class FeedClient(RegistryClient):
    """
    NuGet V2 feed to query against. If you use this API from a tool,
    please use a dedicated requests session and set a custom user-agent header.
    """

    def __init__(
        self,
        url: str = DEFAULT_SOURCE,
        session: requests.Session = requests.Session(),
        cache: RegistryCache = RegistryCache(),
    ):
        super().__init__(cache)
        self.url = url.rstrip("/")
        # reuse the same connection for all requests
        self.rs = session

    def get(self, url: str) -> requests.Response:
        """
        Perform a GET request on the feed. Raises PackageNotFoundError on 404.
        """
        try:
            response: requests.Response = self.rs.get(
                url, headers={"Accept": "application/atom+xml,application/xml"}
            )
            if response.status_code == 404:
                raise PackageNotFoundError(url)
            response.raise_for_status()
            return response
        except RequestException as e:
            raise RegistryError(e)

    def _find_by_id_url(self, id: str) -> str:
        # OData string literals escape quotes by doubling them
        literal = quote(id.replace("'", "''"), safe="")
        return f"{self.url}/FindPackagesById()?id='{literal}'"

    def fetch_packages(self, id: str) -> list[ResolvedPackage]:
        url = self._find_by_id_url(id)
        packages = []
        while url:
            logger.debug(f"Query feed: {url}")
            try:
                response = self.get(url)
            except PackageNotFoundError:
                break
            try:
                root = ET.fromstring(response.content)
            except ET.ParseError as e:
                raise RegistryError(f"malformed feed response for '{id}': {e}")
            for entry in root.findall("atom:entry", NS):
                pkg = self._parse_entry(entry)
                if pkg:
                    packages.append(pkg)
            next_link = root.find("atom:link[@rel='next']", NS)
            url = next_link.get("href") if next_link is not None else None
        logger.debug(f"Found {len(packages)} versions of '{id}'")
        return packages

    @staticmethod
    def _parse_entry(entry: ET.Element) -> ResolvedPackage | None:
        props = entry.find("m:properties", NS)

        def prop(name: str) -> str:
            if props is None:
                return ""
            return (props.findtext(f"d:{name}", default="", namespaces=NS) or "").strip()

        pkg_id = prop("Id") or (entry.findtext("atom:title", default="", namespaces=NS) or "").strip()
        try:
            version = NuGetVersion(prop("Version"))
        except InvalidVersionError as e:
            logger.warning(f"ignoring feed entry of '{pkg_id}': {e}")
            return None

        authors = []
        for name in entry.findall("atom:author/atom:name", NS):
            authors.extend(a.strip() for a in (name.text or "").split(",") if a.strip())

        content = entry.find("atom:content", NS)
        download_url = content.get("src", "") if content is not None else ""

        listed = prop("Listed").lower() != "false" and not prop("Published").startswith(
            UNLISTED_PUBLISHED_YEAR
        )

        return ResolvedPackage(
            id=pkg_id,
            version=version,
            title=prop("Title"),
            authors=authors,
            download_url=download_url,
            dependency_sets=parse_dependencies(prop("Dependencies")),
            listed=listed,
        )
