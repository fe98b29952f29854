"""Test the configuration module functionality."""

import pytest

from flowprof.config import LAYOUT_CONFIG, VIEWPORT_CONFIG, LayoutConfig, ViewportConfig


def test_layout_config_defaults():
    config = LayoutConfig()

    assert config.max_label_chars == 28
    assert config.max_box_width == 240.0
    assert config.min_box_height == 32.0
    assert config.layer_gap == 90.0
    assert LAYOUT_CONFIG == config


@pytest.mark.parametrize(
    "block,expected",
    [
        ("stratum 0", 0),
        ("Stratum 12", 12),
        ("stratum_3", 3),
        ("stratum-4", 4),
        ("stratum", None),
        ("input", None),
        ("strata 1", None),
    ],
)
def test_stratum_index(block, expected):
    assert LAYOUT_CONFIG.stratum_index(block) == expected


def test_viewport_clamp_scale():
    config = ViewportConfig()

    assert config.clamp_scale(0.01) == 0.2
    assert config.clamp_scale(10.0) == 4.0
    assert config.clamp_scale(1.5) == 1.5
    assert VIEWPORT_CONFIG.wheel_step == pytest.approx(1.1)


def test_configs_are_frozen():
    with pytest.raises(AttributeError):
        LAYOUT_CONFIG.layer_gap = 10.0  # type: ignore[misc]
