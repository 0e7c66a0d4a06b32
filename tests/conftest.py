# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

from importlib.metadata import version
from io import BytesIO
from urllib.parse import unquote

from beartype.claw import beartype_package
import pytest
import requests
from requests import Response
from requests.adapters import BaseAdapter
from urllib3.exceptions import ProtocolError

beartype_package("nusave")

from nusave.nuget.package import Dependency, DependencySet, ResolvedPackage
from nusave.nuget.version import NuGetVersion
from nusave.registry.cache import RegistryCache
from nusave.registry.client import RegistryClient
from nusave.registry.feed import FeedClient
from nusave.store import PackageStore


class TruncatedBody(BytesIO):
    """
    Response body of a connection that breaks after the first half of the
    content was received
    """

    def stream(self, amt=None, decode_content=None):
        yield self.read(len(self.getvalue()) // 2)
        raise ProtocolError("Connection broken: IncompleteRead")


class RouteAdapter(BaseAdapter):
    """
    Transport adapter serving canned responses. A route can be set up to fail
    with a connection error a number of times before it answers, or to break
    off while sending the body.
    """

    def __init__(self):
        super().__init__()
        self.routes: dict[str, tuple[int, bytes]] = {}
        self.failures: dict[str, int] = {}
        self.truncations: dict[str, int] = {}
        self.calls: list[str] = []
        self.proxies: dict[str, dict] = {}

    def add(
        self, url: str, body: bytes, status: int = 200, failures: int = 0, truncations: int = 0
    ):
        self.routes[url] = (status, body)
        self.failures[url] = failures
        self.truncations[url] = truncations

    def send(self, request, **kwargs) -> Response:
        url = unquote(request.url)
        self.calls.append(url)
        self.proxies[url] = dict(kwargs.get("proxies") or {})
        if self.failures.get(url, 0) > 0:
            self.failures[url] -= 1
            raise requests.ConnectionError(f"connection to {url} reset")

        status, body = self.routes.get(url, (404, b"not found"))
        response = Response()
        response.request = request
        response.url = request.url
        response.status_code = status
        if self.truncations.get(url, 0) > 0:
            self.truncations[url] -= 1
            response.raw = TruncatedBody(body)
        else:
            response.raw = BytesIO(body)
        return response

    def close(self):
        pass


class FakeRegistry(RegistryClient):
    """In-memory registry"""

    def __init__(self, cache: RegistryCache = RegistryCache()):
        super().__init__(cache)
        self.packages: dict[str, list[ResolvedPackage]] = {}
        self.queries: list[str] = []

    def add(self, id, version, deps=(), title="", listed=True, authors=("Jane Doe",)):
        pkg = ResolvedPackage(
            id=id,
            version=NuGetVersion(version),
            title=title,
            authors=list(authors),
            download_url=f"https://feed.test/package/{id}/{version}",
            dependency_sets=[DependencySet(dependencies=[Dependency.parse(i, s) for i, s in deps])],
            listed=listed,
        )
        self.packages.setdefault(id.lower(), []).append(pkg)
        self._known.pop(id.lower(), None)
        return pkg

    def fetch_packages(self, id: str) -> list[ResolvedPackage]:
        self.queries.append(id)
        return list(self.packages.get(id.lower(), []))


@pytest.fixture()
def registry():
    """
    Registry modelled after System.Collections 4.3.0 on nuget.org
    """
    reg = FakeRegistry()
    reg.add(
        "System.Collections",
        "4.3.0",
        deps=[
            ("Microsoft.NETCore.Platforms", "1.1.0"),
            ("Microsoft.NETCore.Targets", "1.1.0"),
            ("System.Runtime", "4.3.0"),
        ],
    )
    reg.add(
        "System.Runtime",
        "4.3.0",
        deps=[("Microsoft.NETCore.Platforms", "1.1.0"), ("Microsoft.NETCore.Targets", "1.1.0")],
    )
    reg.add("Microsoft.NETCore.Platforms", "1.0.1")
    reg.add("Microsoft.NETCore.Platforms", "1.1.0")
    reg.add("Microsoft.NETCore.Targets", "1.1.0")
    return reg


@pytest.fixture()
def store(tmp_path):
    return PackageStore(tmp_path / "packages")


@pytest.fixture()
def adapter():
    return RouteAdapter()


@pytest.fixture()
def session(adapter):
    with requests.Session() as rs:
        rs.mount("https://feed.test/", adapter)
        yield rs


@pytest.fixture(scope="session")
def http_session():
    with requests.Session() as rs:
        rs.headers.update({"User-Agent": f"nusave/{version('nusave')}+test"})
        yield rs


@pytest.fixture(scope="module")
def feed(http_session):
    return FeedClient(session=http_session)
