"""Tests for technical-preference rendering."""

from __future__ import annotations

from catalog import DEFAULT_OPTION
from preferences import TechOptions, preference_lines, render_preferences


def test_all_unset_is_empty():
    assert preference_lines(TechOptions()) == []
    assert preference_lines(None) == []
    assert render_preferences(TechOptions(), "Heading") == ""


def test_default_sentinel_is_filtered():
    options = TechOptions(
        style=DEFAULT_OPTION, layout=DEFAULT_OPTION, angle=DEFAULT_OPTION, quality=DEFAULT_OPTION
    )
    assert preference_lines(options) == []


def test_blank_values_are_filtered():
    assert preference_lines(TechOptions(style="   ", angle="")) == []


def test_mixed_axes_keep_fixed_order():
    options = TechOptions(quality="8K", style="Cinematic", layout=DEFAULT_OPTION, angle="Low-angle")
    assert preference_lines(options) == [
        "- Style: Cinematic",
        "- Angle: Low-angle",
        "- Quality: 8K",
    ]


def test_line_count_matches_set_axes():
    options = TechOptions(layout="Portrait")
    assert len(preference_lines(options)) == 1


def test_from_mapping_ignores_unknown_keys():
    options = TechOptions.from_mapping({"style": "Anime", "mood": "happy"})
    assert preference_lines(options) == ["- Style: Anime"]


def test_render_is_byte_identical_for_equal_inputs():
    first = render_preferences(TechOptions(style="Vintage", quality="8K"), "Prefs:")
    second = render_preferences(TechOptions(quality="8K", style="Vintage"), "Prefs:")
    assert first == second
    assert first == "\n**Prefs:**\n- Style: Vintage\n- Quality: 8K\n"


def test_from_mapping_treats_blank_form_values_as_unset():
    options = TechOptions.from_mapping({"style": "", "layout": "Portrait", "angle": None})
    assert options.style is None
    assert options.angle is None
    assert options.quality is None
    assert preference_lines(options) == ["- Layout: Portrait"]
