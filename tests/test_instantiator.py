"""Tests for building objects from configuration entries."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from storeuri.core.storage.instantiator import Instantiator


class Endpoint:
    def __init__(self, host, port=21, *, secure=False):
        self.host = host
        self.port = port
        self.secure = secure


class Flexible:
    def __init__(self, name, *args, **kwargs):
        self.name = name
        self.args = args
        self.kwargs = kwargs


@dataclass
class Bucket:
    name: str
    region: str = "eu-west-1"


def connect(url, username=None):
    return url, username


class TestInstantiator:
    """Test the Instance Builder."""

    @pytest.fixture
    def instantiator(self):
        return Instantiator()

    def test_matches_named_parameters(self, instantiator):
        """Test that only entries named like parameters are passed."""
        endpoint = instantiator.instantiate(
            Endpoint, {"host": "ftp.local", "port": 2121, "adapter": "ftp", "root": "/pub"}
        )

        assert endpoint.host == "ftp.local"
        assert endpoint.port == 2121
        assert endpoint.secure is False

    def test_keyword_only_parameters(self, instantiator):
        """Test that keyword-only parameters are matched too."""
        endpoint = instantiator.instantiate(Endpoint, {"host": "h", "secure": True})

        assert endpoint.secure is True

    def test_var_parameters_receive_nothing(self, instantiator):
        """Test that *args and **kwargs are never filled from configuration."""
        obj = instantiator.instantiate(Flexible, {"name": "x", "args": (1,), "kwargs": {"a": 1}})

        assert obj.args == ()
        assert obj.kwargs == {}

    def test_missing_required_parameter(self, instantiator):
        """Test that the constructor's own TypeError propagates."""
        with pytest.raises(TypeError):
            instantiator.instantiate(Endpoint, {"port": 21})

    def test_dataclass(self, instantiator):
        """Test dataclass construction with defaults."""
        assert instantiator.instantiate(Bucket, {"name": "data"}) == Bucket("data", "eu-west-1")

    def test_plain_function(self, instantiator):
        """Test that factory functions are called the same way."""
        assert instantiator.instantiate(connect, {"url": "https://id", "password": "p"}) == (
            "https://id",
            None,
        )

    def test_arguments(self, instantiator):
        """Test the computed keyword arguments."""
        assert instantiator.arguments(Endpoint, {"host": "h", "other": 1}) == {"host": "h"}
