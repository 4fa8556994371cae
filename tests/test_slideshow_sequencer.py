from __future__ import annotations

from datetime import timedelta

import pytest

from slideshow.media import EmptyCatalogError, MediaItem, MediaKind, OrderingMode, SlideshowConfig
from slideshow.sequencer import build_pass, order_catalog

SEQUENTIAL = SlideshowConfig(ordering=OrderingMode.SEQUENTIAL)
SHUFFLE = SlideshowConfig(ordering=OrderingMode.SHUFFLE)


def make_catalog(size: int) -> list[MediaItem]:
    return [MediaItem(id=f"m{index}", kind=MediaKind.PHOTO, ordinal=index) for index in range(size)]


def ids(items) -> list[str]:
    return [item.id for item in items]


def test_sequential_pass_follows_ordinals_regardless_of_input_order():
    catalog = [
        MediaItem(id="c", ordinal=3),
        MediaItem(id="a", ordinal=1),
        MediaItem(id="b", ordinal=2),
    ]

    for pass_index in (0, 1, 17):
        assert ids(build_pass(catalog, SEQUENTIAL, pass_index)) == ["a", "b", "c"]


def test_order_catalog_breaks_ordinal_ties_by_id():
    catalog = [MediaItem(id="z", ordinal=1), MediaItem(id="y", ordinal=1), MediaItem(id="x", ordinal=0)]

    assert ids(order_catalog(catalog)) == ["x", "y", "z"]


@pytest.mark.parametrize("size", [1, 2, 3, 7])
def test_every_item_appears_once_per_shuffled_pass(size):
    catalog = make_catalog(size)

    for pass_index in range(25):
        assert sorted(ids(build_pass(catalog, SHUFFLE, pass_index))) == sorted(ids(catalog))


def test_shuffled_pass_is_reproducible_across_calls_and_input_order():
    catalog = make_catalog(9)
    reordered = list(reversed(catalog))

    first = build_pass(catalog, SHUFFLE, 2)
    second = build_pass(list(catalog), SHUFFLE, 2)
    third = build_pass(reordered, SHUFFLE, 2)

    assert ids(first) == ids(second) == ids(third)


def test_shuffle_does_not_depend_on_durations():
    catalog = make_catalog(6)
    short = SlideshowConfig(ordering=OrderingMode.SHUFFLE, photo_duration=timedelta(seconds=3))

    assert ids(build_pass(catalog, SHUFFLE, 4)) == ids(build_pass(catalog, short, 4))


def test_shuffled_passes_vary():
    catalog = make_catalog(8)

    orders = {tuple(ids(build_pass(catalog, SHUFFLE, pass_index))) for pass_index in range(10)}

    assert len(orders) > 1


@pytest.mark.parametrize("size", [2, 3, 4, 5, 10])
@pytest.mark.parametrize("config", [SEQUENTIAL, SHUFFLE])
def test_no_item_repeats_across_pass_boundary(size, config):
    catalog = make_catalog(size)

    for pass_index in range(60):
        previous = build_pass(catalog, config, pass_index)
        following = build_pass(catalog, config, pass_index + 1)
        assert previous[-1].id != following[0].id


def test_single_item_catalog_repeats_itself():
    catalog = make_catalog(1)

    assert ids(build_pass(catalog, SHUFFLE, 5)) == ["m0"]


def test_empty_catalog_is_rejected():
    with pytest.raises(EmptyCatalogError):
        build_pass([], SHUFFLE, 0)


def test_negative_pass_index_is_rejected():
    with pytest.raises(ValueError):
        build_pass(make_catalog(3), SHUFFLE, -1)
