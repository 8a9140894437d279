from __future__ import annotations

import sys
import types

import pytest

from ev_charge_client.__main__ import main
from ev_charge_client.security import SessionAuthorizer


@pytest.fixture()
def fake_segno(monkeypatch):
    made = []

    class DummyQR:
        def save(self, path, **_kwargs):
            made.append(path)

    def fake_make(data, **_kwargs):
        made.append(data)
        return DummyQR()

    monkeypatch.setitem(sys.modules, "segno", types.SimpleNamespace(make=fake_make))
    return made


def test_issue_code_writes_signed_token(monkeypatch, fake_segno, tmp_path, capsys):
    monkeypatch.setenv("EVCHARGE_SESSION_SECRET", "s3cret")
    output = str(tmp_path / "station-1.png")

    assert main(["issue-code", "1", output]) == 0

    token, path = fake_segno
    assert path == output
    SessionAuthorizer("s3cret").authorize(token, expected_station_id="1")
    assert "sha256" in capsys.readouterr().out


def test_issue_code_requires_secret(monkeypatch, fake_segno, tmp_path, capsys):
    monkeypatch.delenv("EVCHARGE_SESSION_SECRET", raising=False)

    assert main(["issue-code", "1", str(tmp_path / "out.png")]) == 1

    assert fake_segno == []
    assert capsys.readouterr().out.startswith("error:")
