import pytest

from ascii_proxy.config import DEFAULT_PALETTE
from ascii_proxy.processing.palette import PaletteStore, hex_to_rgb, parse_color


def test_hex_to_rgb() -> None:
    assert hex_to_rgb("#ff8000") == (255, 128, 0)
    with pytest.raises(ValueError):
        hex_to_rgb("#fff")


def test_parse_color_validates_triples() -> None:
    assert parse_color([1, 2, 3]) == (1, 2, 3)
    with pytest.raises(ValueError):
        parse_color([1, 2])
    with pytest.raises(ValueError):
        parse_color([0, 0, 256])
    with pytest.raises(ValueError):
        parse_color(None)


def test_store_starts_with_default_palette() -> None:
    assert PaletteStore().snapshot() == DEFAULT_PALETTE


def test_add_remove_and_reset() -> None:
    store = PaletteStore([(0, 0, 0)])

    store.add("#102030")
    store.add([1, 1, 1])
    assert store.snapshot() == ((0, 0, 0), (16, 32, 48), (1, 1, 1))

    store.remove(0)
    assert store.snapshot() == ((16, 32, 48), (1, 1, 1))
    with pytest.raises(IndexError):
        store.remove(5)

    store.reset()
    assert store.snapshot() == DEFAULT_PALETTE


def test_snapshot_is_isolated_from_later_updates() -> None:
    store = PaletteStore([(9, 9, 9)])
    snapshot = store.snapshot()

    store.replace([])

    assert snapshot == ((9, 9, 9),)
    assert len(store) == 0
