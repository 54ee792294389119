"""Tests for configuration and data models."""
import pytest

from ftpferry.shared.models import EventPayload, Operation, SiteConfig


class TestSiteConfig:
    def test_default_ports(self):
        assert SiteConfig(host="h", username="u").port == 21
        assert SiteConfig(host="h", username="u", protocol="sftp").port == 22

    def test_explicit_port_kept(self):
        assert SiteConfig(host="h", username="u", port=2121).port == 2121

    @pytest.mark.parametrize(
        "overrides",
        [
            {"host": ""},
            {"protocol": "scp"},
            {"port": 0},
            {"port": 65536},
            {"timeout": 0},
        ],
    )
    def test_invalid_values_rejected(self, overrides):
        values = dict(host="h", username="u")
        values.update(overrides)
        with pytest.raises(ValueError):
            SiteConfig(**values)

    def test_repr_hides_password(self):
        site = SiteConfig(host="h", username="u", password="hunter2")
        assert "hunter2" not in repr(site)


class TestOperation:
    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError):
            Operation("mkdir", "/x")

    def test_str(self):
        assert str(Operation("upload", "/x", "a.txt")) == "upload a.txt @ /x"
        assert str(Operation("rename", "/x", "a", "b")) == "rename a -> b in /x"
        assert str(Operation("list", "/x")) == "list /x"


def test_event_payload_as_dict():
    payload = EventPayload("uploaded", "a.txt", "/x")
    assert payload.as_dict() == {"file": "a.txt", "path": "/x"}
