import sys

import pytest

from driver.__main__ import main


def test_demo_with_blank_name_logs_and_exits(monkeypatch, caplog):
    monkeypatch.setattr(sys, "argv", ["driver", "demo", "--name", " ", "--price-id", "price_abc"])

    with pytest.raises(SystemExit) as exc_info:
        main()

    assert exc_info.value.code == 1
    assert "name must not be empty" in caplog.text


def test_demo_without_price_id_exits_with_usage_code(monkeypatch):
    monkeypatch.setattr(sys, "argv", ["driver", "demo", "--price-id", ""])

    with pytest.raises(SystemExit) as exc_info:
        main()

    assert exc_info.value.code == 2
