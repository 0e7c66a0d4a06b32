# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

import io
import json

import jsonschema
import pytest

from nusave import schema
from nusave.nuget.package import PackageRef, PendingSet, ResolvedPackage
from nusave.nuget.version import NuGetVersion, VersionRange


def test_parse_reflist_stream():
    data = [
        "# direct references",
        "Newtonsoft.Json 13.0.3",
        "",
        "  System.Collections   4.3.0  ",
    ]
    refs = list(PackageRef.parse_reflist_stream(io.StringIO("\n".join(data))))
    assert [r.id for r in refs] == ["Newtonsoft.Json", "System.Collections"]
    assert refs[1].version_spec == VersionRange.exact("4.3.0")
    assert all(r.allow_prerelease and r.allow_unlisted for r in refs)


@pytest.mark.parametrize("line", ["Newtonsoft.Json", "Newtonsoft.Json 13.0.3 extra"])
def test_parse_reflist_invalid(line):
    with pytest.raises(ValueError):
        list(PackageRef.parse_reflist_stream(io.StringIO(line)))


def test_pending_set():
    a = ResolvedPackage(id="Contoso.A", version=NuGetVersion("1.0"))
    b = ResolvedPackage(id="Contoso.B", version=NuGetVersion("1.0"))
    a_again = ResolvedPackage(id="Contoso.A", version=NuGetVersion("1.0.0"))

    pending = PendingSet([b])
    assert pending.add(a)
    assert not pending.add(a_again)
    assert [p.id for p in pending] == ["Contoso.B", "Contoso.A"]
    assert a_again in pending
    assert len(pending) == 2


def test_title_defaults_to_id():
    pkg = ResolvedPackage(id="Contoso.A", version=NuGetVersion("1.0"))
    assert pkg.title == "Contoso.A"
    assert pkg.key == ("Contoso.A", NuGetVersion("1.0"))


def test_pending_set_json():
    pending = PendingSet(
        [
            ResolvedPackage(
                id="System.Collections",
                version=NuGetVersion("4.3.0"),
                authors=["Microsoft", ".NET Foundation"],
            )
        ]
    )
    data = json.loads(pending.json())
    jsonschema.validate(data, schema=schema.resolve)
    assert data == [{"id": "System.Collections", "version": "4.3.0", "authors": "Microsoft .NET Foundation"}]
