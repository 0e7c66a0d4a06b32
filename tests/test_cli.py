# Copyright (C) 2025 Siemens
#
# SPDX-License-Identifier: MIT

import json
import sys

import jsonschema
import pytest
import requests

from nusave import cli, schema
from nusave.commands.input import RegistryInput
from nusave.registry import PersistentRegistryCache


@pytest.fixture()
def fake_env(monkeypatch, registry, session, adapter):
    """
    Route the commands to the in-memory registry and the test transport
    """
    monkeypatch.setattr(RegistryInput, "create_session", classmethod(lambda cls: session))
    monkeypatch.setattr(
        RegistryInput, "create_registry", classmethod(lambda cls, args, session: registry)
    )
    for pkgs in registry.packages.values():
        for p in pkgs:
            adapter.add(p.download_url, f"{p.id} {p.version}".encode())
    return adapter


def run_main(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["nusave", *argv])
    cli.main()


def test_resolve_json(monkeypatch, capsys, fake_env, tmp_path):
    run_main(
        monkeypatch,
        "--json",
        "resolve",
        "System.Collections",
        "--version",
        "4.3.0",
        "--outdir",
        str(tmp_path),
    )
    data = json.loads(capsys.readouterr().out)
    jsonschema.validate(data, schema=schema.resolve)
    assert [d["id"] for d in data] == [
        "System.Collections",
        "Microsoft.NETCore.Platforms",
        "Microsoft.NETCore.Targets",
        "System.Runtime",
    ]
    # nothing is downloaded
    assert fake_env.calls == []


def test_download_references(monkeypatch, capsys, fake_env, tmp_path):
    refs = tmp_path / "refs.txt"
    refs.write_text("System.Runtime 4.3.0\n")
    outdir = tmp_path / "packages"
    run_main(monkeypatch, "download", "-r", str(refs), "--outdir", str(outdir))

    out = capsys.readouterr().out
    assert "downloading 3 packages (cached: 0)" in out
    assert sorted(p.name for p in outdir.iterdir()) == [
        "microsoft.netcore.platforms.1.1.0.nupkg",
        "microsoft.netcore.targets.1.1.0.nupkg",
        "system.runtime.4.3.0.nupkg",
    ]


def test_download_json(monkeypatch, capsys, fake_env, tmp_path):
    run_main(
        monkeypatch, "--json", "download", "Microsoft.NETCore.Targets", "--outdir", str(tmp_path)
    )
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 1
    result = json.loads(lines[0])
    jsonschema.validate(result, schema=schema.download)
    assert result["status"] == "ok"


def test_unknown_package(monkeypatch, capsys, fake_env, tmp_path):
    with pytest.raises(SystemExit) as e:
        run_main(monkeypatch, "resolve", "Contoso.Unknown", "--outdir", str(tmp_path))
    assert e.value.code == -1
    assert "Could not resolve package: Contoso.Unknown" in capsys.readouterr().err


def test_conflicting_input(monkeypatch, capsys, fake_env, tmp_path):
    with pytest.raises(SystemExit) as e:
        run_main(monkeypatch, "resolve", "--outdir", str(tmp_path))
    assert e.value.code == -1
    assert "either a package id or '--references'" in capsys.readouterr().err


def test_registry_options(tmp_path):
    args = cli.setup_parser().parse_args(
        ["resolve", "System.Collections", "--outdir", str(tmp_path), "--cache-ttl", "30"]
    )
    with requests.Session() as rs:
        client = RegistryInput.create_registry(args, rs)
    assert isinstance(client.cache, PersistentRegistryCache)
    assert client.cache.ttl == 30.0
    assert client.cache.cachedir.parent == tmp_path / ".cache"

    args = cli.setup_parser().parse_args(["resolve", "System.Collections", "--no-cache"])
    with requests.Session() as rs:
        client = RegistryInput.create_registry(args, rs)
    assert not isinstance(client.cache, PersistentRegistryCache)
