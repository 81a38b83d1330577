from __future__ import annotations
import pytest

from blueprints.aggregates.classification import (
    base_index, color_for, image_path_for, resolve_pin,
)

def test_first_congregation_uses_language_base():
    assert color_for(1, "english") == 1
    assert color_for(1, "tamil") == 2
    assert color_for(1, "Malayalam") == 5

def test_unknown_language_falls_back_to_one():
    assert base_index("klingon") == 1
    assert base_index(None) == 1
    assert color_for(1, "") == 1

def test_other_congregations_are_offset_by_five():
    assert color_for(2, "english") == 6
    assert color_for(3, "telugu") == 14

def test_raw_sixteen_wraps_to_one():
    # (4 - 1) * 5 + 1 = 16
    assert color_for(4, "english") == 1
    assert color_for(4, "tamil") == 2

@pytest.mark.parametrize("cong", [1, 2, 3, 4, 7, 50, 2898201])
@pytest.mark.parametrize("lang", ["english", "tamil", "hindi", "telugu", "malayalam", "other"])
def test_color_always_in_palette(cong, lang):
    assert 1 <= color_for(cong, lang) <= 15

def test_image_path():
    assert image_path_for(7) == "/pins/pin7.png"

def test_resolve_pin_priority():
    # stored image wins over everything
    assert resolve_pin(2, "english", pin_color=3, pin_image="/custom.png") == (3, "/custom.png")
    # stored color next
    assert resolve_pin(2, "english", pin_color=3) == (3, "/pins/pin3.png")
    # computed last
    assert resolve_pin(2, "english") == (6, "/pins/pin6.png")
