import pytest

import mathquiz.__main__ as module_main
import mathquiz.main as main


def test_module_entrypoint_calls_main_entry(monkeypatch) -> None:
    called = {"value": 0}
    monkeypatch.setattr(module_main, "main_entry", lambda: called.__setitem__("value", 1))
    module_main.main()
    assert called["value"] == 1


def test_main_entry_exits_with_run_status(monkeypatch) -> None:
    monkeypatch.setattr(main, "run", lambda: 3)
    with pytest.raises(SystemExit) as excinfo:
        main.main_entry()
    assert excinfo.value.code == 3
