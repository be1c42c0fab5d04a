"""
Unit tests for the colors limiter.
"""

from palettize.config import PaletteSettings
from palettize.services.colors import Color, ColorsLimiter


def _colors(*percentages):
    return [Color(i * 40, 0, 0, p) for i, p in enumerate(percentages)]


class TestColorsLimiter:
    """Test the three retention bounds and ordering"""

    def test_colors_limit(self):
        settings = PaletteSettings(colors_limit=2, min_percentage_sum=1.0, min_color_percentage=0.0)
        limited = ColorsLimiter(settings).limit(_colors(0.5, 0.3, 0.2))

        assert [c.percentage for c in limited] == [0.5, 0.3]

    def test_min_percentage_sum(self):
        """The color that crosses the cumulative bound is still kept"""
        settings = PaletteSettings(min_percentage_sum=0.7, min_color_percentage=0.0)
        limited = ColorsLimiter(settings).limit(_colors(0.5, 0.3, 0.2))

        assert [c.percentage for c in limited] == [0.5, 0.3]

    def test_min_color_percentage(self):
        settings = PaletteSettings(min_percentage_sum=1.0, min_color_percentage=0.05)
        limited = ColorsLimiter(settings).limit(_colors(0.6, 0.3, 0.06, 0.04))

        assert [c.percentage for c in limited] == [0.6, 0.3, 0.06]

    def test_sorts_descending_without_mutating_input(self):
        colors = _colors(0.1, 0.5, 0.3)
        original = list(colors)
        settings = PaletteSettings(min_percentage_sum=1.0, min_color_percentage=0.0)

        limited = ColorsLimiter(settings).limit(colors)

        assert [c.percentage for c in limited] == [0.5, 0.3, 0.1]
        assert colors == original
        assert limited is not colors

    def test_default_settings_drop_rare_colors(self, black, white, pseudo_blacks):
        """Default floor of 1% removes the 0.1% near-blacks"""
        pairs = [(black, 0.597), (white, 0.4)] + [(c, 0.001) for c in pseudo_blacks]

        limited = ColorsLimiter().limit(pairs)

        assert limited == [black, white]

    def test_per_call_settings_override(self):
        limiter = ColorsLimiter(PaletteSettings(colors_limit=1))
        override = PaletteSettings(colors_limit=3, min_percentage_sum=1.0, min_color_percentage=0.0)

        assert len(limiter.limit(_colors(0.4, 0.3, 0.2))) == 1
        assert len(limiter.limit(_colors(0.4, 0.3, 0.2), override)) == 3

    def test_empty_input(self):
        assert ColorsLimiter().limit([]) == []
