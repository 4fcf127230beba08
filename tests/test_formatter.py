"""
值格式化單元測試：色碼轉換、alpha 後綴、布林與數字顯示。
"""
import pytest

from figma_git_sync.formatter import (
    format_value,
    hex_to_rgba,
    is_hex_color,
    rgba_to_hex,
)


# ─── COLOR ───────────────────────────────────────────────────────────────────

class TestColor:

    def test_opaque_white_and_black(self):
        assert format_value({"r": 1, "g": 1, "b": 1, "a": 1}, "COLOR") == "#ffffff"
        assert format_value({"r": 0, "g": 0, "b": 0, "a": 1}, "COLOR") == "#000000"

    def test_missing_alpha_treated_as_opaque(self):
        assert format_value({"r": 1, "g": 0, "b": 0}, "COLOR") == "#ff0000"

    def test_alpha_suffix_only_when_not_opaque(self):
        assert format_value({"r": 0, "g": 0, "b": 0, "a": 0.5}, "COLOR") == "#00000080"
        assert format_value({"r": 0, "g": 0, "b": 0, "a": 0}, "COLOR") == "#00000000"

    def test_half_up_rounding(self):
        # 0.5 * 255 = 127.5 → 128
        assert rgba_to_hex(0.5, 0.5, 0.5) == "#808080"

    def test_channels_clamped(self):
        assert rgba_to_hex(1.2, -0.1, 0) == "#ff0000"

    @pytest.mark.parametrize("step", [0, 1, 37, 128, 200, 254, 255])
    def test_round_trip_within_one_step(self, step):
        c = step / 255
        for a in (1, c):
            hex_str = rgba_to_hex(c, c, c, a)
            back = hex_to_rgba(hex_str)
            for channel in ("r", "g", "b"):
                assert abs(back[channel] - c) <= 1 / 255
            assert abs(back["a"] - a) <= 1 / 255
            assert (len(hex_str) == 9) == (a != 1)

    def test_hex_to_rgba_rejects_garbage(self):
        with pytest.raises(ValueError):
            hex_to_rgba("not-a-color")

    def test_is_hex_color(self):
        assert is_hex_color("#fff")
        assert is_hex_color("#A1B2C3")
        assert is_hex_color("#00000080")
        assert not is_hex_color("#12345")
        assert not is_hex_color("ffffff")
        assert not is_hex_color(16777215)


# ─── 其他型別 ────────────────────────────────────────────────────────────────

class TestScalars:

    def test_boolean(self):
        assert format_value(True, "BOOLEAN") == "true"
        assert format_value(False, "BOOLEAN") == "false"

    def test_integral_float_has_no_decimal(self):
        assert format_value(4, "FLOAT") == "4"
        assert format_value(4.0, "FLOAT") == "4"

    def test_fractional_float(self):
        assert format_value(0.5, "FLOAT") == "0.5"

    def test_string_passthrough(self):
        assert format_value("Inter", "STRING") == "Inter"

    def test_none_is_empty(self):
        assert format_value(None, "STRING") == ""

    def test_unknown_structure_falls_back_to_json(self):
        assert format_value({"x": 1}, "FLOAT") == '{"x":1}'
        assert format_value([1, 2], "STRING") == "[1,2]"
