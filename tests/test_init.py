from types import ModuleType

import pytest

from webcpd._cli_args import build_parser


def test_version_fallback(monkeypatch: pytest.MonkeyPatch) -> None:
    import importlib.metadata

    def _raise(_name: str) -> str:
        raise importlib.metadata.PackageNotFoundError

    monkeypatch.setattr(importlib.metadata, "version", _raise)
    module = importlib.reload(importlib.import_module("webcpd"))
    assert isinstance(module, ModuleType)
    assert module.__version__ == "dev"


def test_version_from_metadata(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    import importlib.metadata

    asked: list[str] = []

    def _fake(name: str) -> str:
        asked.append(name)
        return "1.2.3"

    monkeypatch.setattr(importlib.metadata, "version", _fake)
    module = importlib.reload(importlib.import_module("webcpd"))
    assert asked == ["webcpd"]
    assert module.__version__ == "1.2.3"

    with pytest.raises(SystemExit) as exc:
        build_parser(module.__version__).parse_args(["--version"])
    assert exc.value.code == 0
    assert capsys.readouterr().out.strip() == "WebCPD 1.2.3"
