from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest

from sov_engine.session import EngineSession

from conftest import make_export


APP_PATH = str(Path(__file__).resolve().parent.parent / "app.py")


@pytest.fixture
def app(brand_only):
    engine = EngineSession(column_config=brand_only)
    engine.ingest_file("one.xlsx", make_export(["Brand", "2024 January"], [["A", "10"], ["B", "5"]]))
    at = AppTest.from_file(APP_PATH, default_timeout=30)
    at.session_state["engine"] = engine
    at.run()
    assert not at.exception
    return at


def _button(at, label):
    return next(b for b in at.button if b.label == label)


def test_select_all_overrides_narrowed_multiselect(app):
    app.multiselect(key="filter_brands").set_value(["A"]).run()
    assert app.multiselect(key="filter_brands").value == ["A"]

    _button(app, "Select all").click().run()
    assert not app.exception
    assert app.multiselect(key="filter_brands").value == ["A", "B"]
    assert app.session_state["engine"].filters.brands == frozenset({"A", "B"})


def test_clear_empties_filter_widgets(app):
    _button(app, "Clear").click().run()
    assert not app.exception
    assert app.multiselect(key="filter_brands").value == []
    assert app.session_state["engine"].filters.is_empty
