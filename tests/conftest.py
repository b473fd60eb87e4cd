"""Shared pytest fixtures and helpers.

The InfluxDB server is replaced by ``httpx.MockTransport`` so tests run
without any live services; every request the client sends is recorded.
Configuration files live in ``tmp_path``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import httpx
import pytest

from effluence import module
from effluence.clients.influxdb import InfluxDBClient
from effluence.config import ExportConfig
from effluence.deps import get_settings
from effluence.exporter import Exporter
from effluence.models import DataType, Destination

# ── Constants ─────────────────────────────────────────────────────────────────

CONFIG_YAML = """\
url: http://influxdb:8086
org: monitoring
bucket: history
token: s3cr3t

log:
  bucket: history-logs
text:
  url: null
"""

# ── Mock InfluxDB ─────────────────────────────────────────────────────────────


class FakeInfluxDB:
    """Records requests and answers them with a configurable handler."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.respond: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(
            204
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        return self.respond(request)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]


# ── Fixtures ──────────────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def clean_module_state(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in ("EFFLU_CONFIG", "EFFLU_LOG_LEVEL", "EFFLU_PING_ON_INIT"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    module.uninit()


@pytest.fixture()
def fake_influxdb() -> FakeInfluxDB:
    return FakeInfluxDB()


@pytest.fixture()
def influx_client(fake_influxdb: FakeInfluxDB) -> Iterator[InfluxDBClient]:
    client = InfluxDBClient(transport=httpx.MockTransport(fake_influxdb))
    yield client
    client.close()


@pytest.fixture()
def destination() -> Destination:
    return Destination(url="http://h", org="o", bucket="b", token="t")


@pytest.fixture()
def export_config() -> ExportConfig:
    default = Destination(url="http://influxdb:8086", org="monitoring", bucket="history", token="s3cr3t")
    return ExportConfig(
        {
            DataType.FLOAT: default,
            DataType.INTEGER: default,
            DataType.STRING: default,
            DataType.TEXT: Destination(org="monitoring", bucket="history", token="s3cr3t"),
            DataType.LOG: default.model_copy(update={"bucket": "history-logs"}),
        }
    )


@pytest.fixture()
def exporter(export_config: ExportConfig, influx_client: InfluxDBClient) -> Exporter:
    return Exporter(export_config, influx_client)


@pytest.fixture()
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "effluence.yaml"
    path.write_text(CONFIG_YAML)
    return path
