from __future__ import annotations

import runpy
from pathlib import Path

import sysgauge_app.__main__ as cli_main


def test_main_defaults_to_watch(monkeypatch) -> None:
    calls: list[list[str]] = []
    monkeypatch.setattr(cli_main, "_cli_main", lambda argv=None: calls.append(list(argv or [])) or 0)

    rc = cli_main.main([])
    assert rc == 0
    assert calls == [["watch"]]


def test_main_passes_through_args(monkeypatch) -> None:
    calls: list[list[str]] = []
    monkeypatch.setattr(cli_main, "_cli_main", lambda argv=None: calls.append(list(argv or [])) or 0)

    rc = cli_main.main(["doctor"])
    assert rc == 0
    assert calls == [["doctor"]]


def test_main_module_runpath_without_package_context() -> None:
    main_path = Path(__file__).resolve().parents[1] / "apps" / "cli" / "sysgauge_app" / "__main__.py"
    result = runpy.run_path(str(main_path))
    assert "main" in result
