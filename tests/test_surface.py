import pytest

from pageview.surface import RGBA, Surface, parse_color


def test_parse_hex_black_and_white():
    assert parse_color("#000000") == RGBA(0.0, 0.0, 0.0, 1.0)
    assert parse_color("#FFFFFF") == RGBA(1.0, 1.0, 1.0, 1.0)


def test_parse_short_and_long_hex_agree():
    assert parse_color("#fff") == parse_color("#FFFFFF")
    assert parse_color("#ffffffffffff") == parse_color("#FFFFFF")
    assert parse_color("#000") == parse_color("#000000000")


@pytest.mark.parametrize("spec", ["", "#12", "#12345", "red-ish", "rgb(1,2)", "rgb(a,b,c)"])
def test_parse_invalid(spec):
    with pytest.raises(ValueError):
        parse_color(spec)


def test_parse_functional_matches_hex():
    assert parse_color("rgb(255, 255, 255)") == parse_color("#FFFFFF")
    assert parse_color("rgb(0%, 0%, 0%)") == parse_color("#000000")
    assert parse_color("rgba(255,255,255,1)") == parse_color("#FFFFFF")


def test_parse_rgba_alpha_is_kept():
    color = parse_color("rgba(0, 0, 0, 0.5)")
    assert color.alpha == 0.5


def test_set_pixel_round_trip():
    surface = Surface(3, 2)
    surface.set_pixel(2, 1, (10, 20, 30, 40))
    assert surface.pixel(2, 1) == (10, 20, 30, 40)
    assert surface.pixel(0, 0) == (0, 0, 0, 0)


def test_pixel_layout_follows_stride():
    surface = Surface(3, 2)
    surface.set_pixel(1, 1, (1, 2, 3, 4))
    offset = 1 * surface.stride + 1 * 4
    assert bytes(surface.data[offset:offset + 4]) == bytes([1, 2, 3, 4])
    assert surface.stride == 3 * 4


def test_pixel_out_of_range():
    surface = Surface(2, 2)
    with pytest.raises(IndexError):
        surface.pixel(2, 0)
    with pytest.raises(IndexError):
        surface.set_pixel(0, -1, (0, 0, 0, 0))


def test_set_pixel_wrong_length():
    surface = Surface(1, 1)
    with pytest.raises(ValueError):
        surface.set_pixel(0, 0, (1, 2, 3))


def test_fill_white():
    surface = Surface(2, 2)
    surface.fill(parse_color("#FFFFFF"))
    assert all(surface.pixel(x, y) == (255, 255, 255, 255) for x in range(2) for y in range(2))


def test_fill_without_alpha_is_opaque():
    surface = Surface(1, 1, has_alpha=False)
    surface.fill(RGBA(0.0, 0.0, 0.0, 0.0))
    assert surface.pixel(0, 0)[3] == 255


def test_fill_transparent_is_all_zero():
    surface = Surface(2, 1)
    surface.set_pixel(0, 0, (9, 9, 9, 9))
    surface.fill(RGBA(1.0, 1.0, 1.0, 0.0))
    assert bytes(surface.data) == bytes(8)


def test_create_similar_keeps_format():
    surface = Surface(4, 4, has_alpha=False, device_scale=(2.0, 2.0))
    similar = surface.create_similar(2, 3)
    assert (similar.width, similar.height) == (2, 3)
    assert similar.has_alpha is False
    assert similar.device_scale == (2.0, 2.0)
    assert len(similar.data) == 2 * 3 * 4


def test_negative_size_rejected():
    with pytest.raises(ValueError):
        Surface(-1, 1)