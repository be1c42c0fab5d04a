"""
Unit tests for image loading, color retrieval and recoloring.
"""

import numpy as np
import pytest
from PIL import Image

from palettize.exceptions import ImageLoadError
from palettize.services.colors import Color
from palettize.services.imaging import ColorsRetriever, ImageRecolorer, ImageRepository

BLACK = (0, 0, 0, 255)
WHITE = (255, 255, 255, 255)
NEAR_BLACK = (4, 0, 0, 255)


class TestImageRepository:
    """Test image I/O"""

    def test_get_converts_to_rgba(self, tmp_path):
        path = tmp_path / "rgb.png"
        Image.new("RGB", (4, 3), (10, 20, 30)).save(path)

        image = ImageRepository().get(path)

        assert image.mode == "RGBA"
        assert image.size == (4, 3)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ImageLoadError):
            ImageRepository().get(tmp_path / "missing.png")

    def test_not_an_image(self, tmp_path):
        path = tmp_path / "notes.png"
        path.write_text("not an image")

        with pytest.raises(ImageLoadError):
            ImageRepository().get(path)

    def test_save_jpeg_drops_alpha(self, tmp_path):
        image = Image.new("RGBA", (2, 2), (1, 2, 3, 255))

        saved = ImageRepository().save(image, tmp_path / "out.jpg")

        assert saved.exists()


class TestColorsRetriever:
    """Test distinct color counting"""

    def test_counts_and_ordering(self, make_image):
        image = ImageRepository().get(make_image([(WHITE, 40), (BLACK, 60)]))

        colors = ColorsRetriever(image).colors()

        assert [c.rgb for c in colors] == [(0, 0, 0), (255, 255, 255)]
        assert [c.percentage for c in colors] == pytest.approx([0.6, 0.4])

    def test_zero_alpha_is_transparent(self, make_image):
        image = ImageRepository().get(make_image([(BLACK, 50), ((0, 0, 0, 0), 30), ((0, 0, 0, 128), 20)]))

        colors = ColorsRetriever(image).colors()

        by_class = {c.is_transparent: c for c in colors}
        assert len(colors) == 2
        assert by_class[False].percentage == pytest.approx(0.7)
        assert by_class[True].percentage == pytest.approx(0.3)

    def test_downscale_keeps_original_colors(self):
        arr = np.zeros((100, 100, 4), dtype=np.uint8)
        arr[..., 3] = 255
        arr[:, 50:, :3] = 255
        image = Image.fromarray(arr)

        colors = ColorsRetriever(image, max_edge=10).colors()

        assert {c.rgb for c in colors} == {(0, 0, 0), (255, 255, 255)}
        assert sum(c.percentage for c in colors) == pytest.approx(1.0)

    def test_empty_image(self):
        assert ColorsRetriever(Image.new("RGBA", (0, 0))).colors() == []


class TestImageRecolorer:
    """Test repainting with a palette"""

    @pytest.fixture
    def image(self, make_image):
        path = make_image([(BLACK, 50), (NEAR_BLACK, 20), ((250, 250, 250, 255), 20), (WHITE, 10)])
        return ImageRepository().get(path)

    def test_recolor_with_reverse_index(self, image):
        black, white = Color(0, 0, 0, 0.7), Color(255, 255, 255, 0.3)
        near_black = Color(4, 0, 0, 0.2)
        reverse_index = {black: black, near_black: black, white: white}

        result = ImageRecolorer(image).recolor({black: 0.7, white: 0.3}, reverse_index)

        pixels = np.asarray(result).reshape(-1, 4)
        assert set(map(tuple, pixels[:70].tolist())) == {BLACK}
        assert set(map(tuple, pixels[70:].tolist())) == {WHITE}

    def test_unmapped_pixels_use_nearest_palette_color(self, image):
        black, white = Color(0, 0, 0, 0.7), Color(255, 255, 255, 0.3)

        result = ImageRecolorer(image).recolor({black: 0.7, white: 0.3})

        colors = {tuple(p) for p in np.asarray(result).reshape(-1, 4).tolist()}
        assert colors == {BLACK, WHITE}

    def test_absorbed_leader_follows_target(self, image):
        black, white = Color(0, 0, 0, 0.7), Color(255, 255, 255, 0.3)
        near_black = Color(4, 0, 0, 0.2)
        reverse_index = {black: black, near_black: near_black}
        targets = {near_black: black}

        result = ImageRecolorer(image).recolor({black: 0.7, white: 0.3}, reverse_index, targets)

        pixels = np.asarray(result).reshape(-1, 4)
        assert set(map(tuple, pixels[50:70].tolist())) == {BLACK}

    def test_alpha_preserved(self):
        arr = np.array([[[10, 10, 10, 0], [250, 250, 250, 255]]], dtype=np.uint8)
        image = Image.fromarray(arr)
        dark = Color(0, 0, 0, 0.5, transparent=True)
        light = Color(255, 255, 255, 0.5)

        result = np.asarray(ImageRecolorer(image).recolor({dark: 0.5, light: 0.5}))

        assert tuple(result[0, 0]) == (0, 0, 0, 0)
        assert tuple(result[0, 1]) == (255, 255, 255, 255)

    def test_empty_palette_returns_copy(self, image):
        result = ImageRecolorer(image).recolor({})
        np.testing.assert_array_equal(np.asarray(result), np.asarray(image))
