from __future__ import annotations

import hashlib
import sys
import types

import pytest

from ev_charge_client.config import AppConfig
from ev_charge_client.qr import QRCodeManager


@pytest.mark.parametrize(
    "data, expected",
    [
        (b"SESSION-OK", "SESSION-OK"),
        (bytearray(b"SESSION-OK"), "SESSION-OK"),
        ("SESSION-OK", "SESSION-OK"),
        (b"  SESSION-OK\r\n", "SESSION-OK"),
        ("\ufeffEVCHG1:1:abcd", "EVCHG1:1:abcd"),
        ("Café".encode("utf-8"), "Café"),
    ],
)
def test_decode_qr_payload_returns_text(data, expected):
    assert QRCodeManager.decode_qr_payload(data) == expected


@pytest.mark.parametrize("data", [b"", b"   ", "\ufeff", b"\xff\xfe\x00", None, 42])
def test_decode_qr_payload_rejects_unusable_data(data):
    assert QRCodeManager.decode_qr_payload(data) is None


def test_payload_digest_matches_sha256():
    digest = QRCodeManager.payload_digest("EVCHG1:1:abcd")

    assert digest == hashlib.sha256(b"EVCHG1:1:abcd").hexdigest()
    assert len(digest) == 64


def test_save_png_uses_configured_options(monkeypatch, tmp_path):
    calls = {}

    class DummyQR:
        def save(self, path, **kwargs):
            calls["save"] = (path, kwargs)

    def fake_make(data, **kwargs):
        calls["make"] = (data, kwargs)
        return DummyQR()

    monkeypatch.setitem(sys.modules, "segno", types.SimpleNamespace(make=fake_make))

    config = AppConfig(qr_error_correction="H", qr_scale=6, qr_border=2)
    output = str(tmp_path / "code.png")
    digest = QRCodeManager(config).save_png("EVCHG1:1:abcd", output)

    assert digest == QRCodeManager.payload_digest("EVCHG1:1:abcd")
    assert calls["make"] == ("EVCHG1:1:abcd", {"error": "H"})
    assert calls["save"] == (output, {"scale": 6, "border": 2})


def test_is_available_follows_segno_import(monkeypatch):
    manager = QRCodeManager(AppConfig())

    monkeypatch.setitem(sys.modules, "segno", types.SimpleNamespace())
    assert manager.is_available()

    monkeypatch.setitem(sys.modules, "segno", None)
    assert not manager.is_available()
