"""
Configuration Tests
"""

import pytest
from pydantic import ValidationError

from palettize.config import PaletteSettings, get_settings
from palettize.exceptions import ConfigurationError


class TestDefaults:
    """Test default settings values"""

    def test_default_values(self, settings):
        assert settings.max_colors_count == 10
        assert settings.colors_limit == 10000
        assert settings.min_percentage_sum == 0.981
        assert settings.min_color_percentage == 0.01
        assert settings.color_similarity_threshold == 25
        assert settings.color_similarity_method == "lab"
        assert settings.debug is False

    def test_settings_are_frozen(self, settings):
        with pytest.raises(ValidationError):
            settings.max_colors_count = 3

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestValidation:
    """Invalid values surface as ConfigurationError"""

    @pytest.mark.parametrize("values", [
        {"max_colors_count": 0},
        {"colors_limit": -5},
        {"min_percentage_sum": 1.5},
        {"min_color_percentage": -0.1},
        {"color_similarity_threshold": -1},
        {"color_similarity_method": "hsv"},
        {"log_level": "LOUD"},
        {"unknown_option": 1},
    ])
    def test_invalid_values(self, values):
        with pytest.raises(ConfigurationError):
            PaletteSettings.build(**values)

    @pytest.mark.parametrize("values", [
        {"color_similarity_method": "hsv"},
        {"max_colors_count": 0},
        {"min_color_percentage": 2.0},
    ])
    def test_constructor_raises_configuration_error(self, values):
        with pytest.raises(ConfigurationError):
            PaletteSettings(**values)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            PaletteSettings(colors_limit=0)

    def test_method_normalized(self):
        assert PaletteSettings.build(color_similarity_method="CIEDE2000").color_similarity_method == "ciede2000"


class TestOverrides:
    """Test environment loading and per-call overrides"""

    def test_from_env(self):
        environ = {
            "PALETTIZE_MAX_COLORS_COUNT": "6",
            "PALETTIZE_COLOR_SIMILARITY_THRESHOLD": "12.5",
            "PALETTIZE_DEBUG": "true",
            "PALETTIZE_LOG_LEVEL": "",
            "UNRELATED": "x",
        }

        settings = PaletteSettings.from_env(environ)

        assert settings.max_colors_count == 6
        assert settings.color_similarity_threshold == 12.5
        assert settings.debug is True
        assert settings.log_level == "INFO"

    def test_from_env_invalid(self):
        with pytest.raises(ConfigurationError):
            PaletteSettings.from_env({"PALETTIZE_MAX_COLORS_COUNT": "many"})

    def test_with_overrides(self, settings):
        updated = settings.with_overrides(max_colors_count=4, color_similarity_threshold=None)

        assert updated.max_colors_count == 4
        assert updated.color_similarity_threshold == 25
        assert settings.max_colors_count == 10

    def test_with_overrides_validates(self, settings):
        with pytest.raises(ConfigurationError):
            settings.with_overrides(color_similarity_method="nope")

    def test_with_no_overrides_returns_same(self, settings):
        assert settings.with_overrides() is settings
