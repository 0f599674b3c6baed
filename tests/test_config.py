import io
import json

import pytest

from globegallery.config import (
    DEFAULTS,
    TOOLTIPS,
    coerce_float,
    default_settings,
    load_settings,
    merge_settings,
    setting,
)
from globegallery.diagnostics import DEBUG_MARKER, DebugSilencer


class TestSettings:
    def test_defaults_are_copied(self):
        settings = default_settings()
        settings["layout"]["radius"] = 9.0
        assert DEFAULTS["layout"]["radius"] == 2.0

    def test_every_default_has_a_tooltip(self):
        keys = {f"{section}.{key}" for section, block in DEFAULTS.items() for key in block}
        assert keys <= set(TOOLTIPS)

    def test_merge_keeps_untouched_keys(self):
        merged = merge_settings(default_settings(), {"camera": {"fov": 60}})
        assert merged["camera"]["fov"] == 60
        assert merged["camera"]["standoff"] == 1.5

    def test_load_missing_file_gives_defaults(self, tmp_path):
        assert load_settings(tmp_path / "nope.json") == DEFAULTS
        assert load_settings() == DEFAULTS

    def test_load_file(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"layout": {"mode": "grid"}}), encoding="utf-8")
        assert load_settings(path)["layout"]["mode"] == "grid"

    @pytest.mark.parametrize("payload", ["{broken", "[1, 2]"])
    def test_load_invalid_file(self, tmp_path, payload):
        path = tmp_path / "settings.json"
        path.write_text(payload, encoding="utf-8")
        with pytest.raises(ValueError):
            load_settings(path)

    def test_setting_falls_back_to_defaults(self):
        assert setting({}, "transition.durationMs") == 800
        assert setting({"transition": {"durationMs": 400}}, "transition.durationMs") == 400
        assert setting({}, "missing.key", "x") == "x"


@pytest.mark.parametrize(
    "value,expected",
    [(1, 1.0), ("2.5", 2.5), (None, 7.0), (True, 7.0), ("abc", 7.0), (float("nan"), 7.0)],
)
def test_coerce_float(value, expected):
    assert coerce_float(value, 7.0) == expected


def test_debug_silencer_filters_marked_lines():
    sink = io.StringIO()
    stream = DebugSilencer(sink, DEBUG_MARKER)
    stream.write(f"{DEBUG_MARKER} hidden\nshown\npartial")
    assert sink.getvalue() == "shown\n"
    stream.flush()
    assert sink.getvalue() == "shown\npartial"


def test_debug_silencer_judges_whole_lines():
    sink = io.StringIO()
    stream = DebugSilencer(sink, DEBUG_MARKER)
    stream.write("[GlobeGallery]")
    stream.write("[DEBUG] split tag\r\nkept\r\n")
    stream.writelines(["[GlobeGallery][WARN] visible\n"])
    assert sink.getvalue() == "kept\r\n[GlobeGallery][WARN] visible\n"
