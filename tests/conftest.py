from collections.abc import Iterator
from pathlib import Path

import pytest

from ovpnctl.core.global_paths import GlobalPath
from ovpnctl.util.log import Log, LogFormat, LogLevel


@pytest.fixture(autouse=True)
def isolated_paths(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    data = tmp_path / "data"
    config = tmp_path / "config"
    workdir = tmp_path / "work"
    workdir.mkdir()

    monkeypatch.setattr(GlobalPath, "data", classmethod(lambda cls: str(data)))
    monkeypatch.setattr(GlobalPath, "config", classmethod(lambda cls: str(config)))
    monkeypatch.setattr(GlobalPath, "state", classmethod(lambda cls: str(tmp_path / "state")))
    monkeypatch.delenv("OVPNCTL_CONFIG_CONTENT", raising=False)
    monkeypatch.delenv("OVPNCTL_URL", raising=False)
    monkeypatch.chdir(workdir)
    yield tmp_path


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    # captured before any test patches Log.configure
    configure = Log.configure
    yield
    configure(level=LogLevel.INFO, format=LogFormat.KV, console=False, file=False)
