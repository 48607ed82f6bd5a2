import pytest

from ascii_proxy.config import ProxySettings
from ascii_proxy.processing.converter import ConversionConfig, Presentation
from ascii_proxy.processing.filters import ColorFilter
from ascii_proxy.processing.quantize import DensityRamp


@pytest.fixture
def settings(monkeypatch) -> ProxySettings:
    for name in ("CONTRAST", "COLOR_MODE", "CHAR_SET", "COLOR_FILTER", "INVERTED"):
        monkeypatch.delenv(name, raising=False)
    return ProxySettings.from_env()


def test_from_env_reads_overrides(monkeypatch) -> None:
    monkeypatch.setenv("CONTRAST", "150")
    monkeypatch.setenv("COLOR_MODE", "on")
    monkeypatch.setenv("CHAR_SET", "Blocks")

    loaded = ProxySettings.from_env()

    assert loaded.contrast == 150.0
    assert loaded.color_mode is True
    assert loaded.char_set == "blocks"


def test_color_mode_turns_inverted_off(settings) -> None:
    inverted = settings.with_updates(inverted=True)

    updated = inverted.with_updates(color_mode=True)

    assert updated.color_mode is True
    assert updated.inverted is False


def test_inverted_turns_color_mode_off(settings) -> None:
    colored = settings.with_updates(color_mode="true")

    updated = colored.with_updates(inverted="yes")

    assert updated.inverted is True
    assert updated.color_mode is False


def test_with_updates_clamps_to_slider_ranges(settings) -> None:
    updated = settings.with_updates(contrast=999, brightness=-5, resolution="5", edge_threshold=120)

    assert updated.contrast == 300.0
    assert updated.brightness == 0.0
    assert updated.resolution == 10
    assert updated.edge_threshold == 100.0


def test_with_updates_rejects_unknown_field(settings) -> None:
    with pytest.raises(KeyError):
        settings.with_updates(bogus=1)


def test_with_updates_rejects_bad_number(settings) -> None:
    with pytest.raises(ValueError):
        settings.with_updates(contrast="loud")


def test_with_updates_leaves_original_untouched(settings) -> None:
    settings.with_updates(contrast=50)

    assert settings.contrast == 100.0


def test_conversion_config_from_settings(settings) -> None:
    updated = settings.with_updates(
        char_set="custom", custom_chars="ab", color_filter="SEPIA", edge_detection=True
    )

    config = ConversionConfig.from_settings(updated)

    assert config.density is DensityRamp.CUSTOM
    assert config.ramp == "ab"
    assert config.color_filter is ColorFilter.SEPIA
    assert config.edge_detection is True


def test_presentation_from_settings(settings) -> None:
    updated = settings.with_updates(font_size=12, char_spacing_x=2, inverted=True)

    presentation = Presentation.from_settings(updated)

    assert presentation == Presentation(font_size=12, char_spacing_x=2, inverted=True)
