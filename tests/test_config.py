from pathlib import Path

from mathdocx.config import load_config
from mathdocx.schemas import ConverterConfig, DocumentStyleConfig

REPO_CONFIG = Path(__file__).parent.parent / "config.yaml"


def test_repository_config_matches_defaults():
    assert load_config(str(REPO_CONFIG)) == ConverterConfig()


def test_none_path_returns_defaults():
    config = load_config(None)
    assert config.images.default_width == 360
    assert config.styles.get('Normal').font_east_asia == '宋体'


def test_missing_file_falls_back(tmp_path):
    assert load_config(str(tmp_path / 'missing.yaml')) == ConverterConfig()


def test_partial_override(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text("images:\n  default_width: 100\n  placeholder: 'missing {alt}'\n", encoding='utf-8')
    config = load_config(str(path))
    assert config.images.default_width == 100
    assert config.images.default_height == 360
    assert config.images.placeholder == 'missing {alt}'
    assert config.styles == DocumentStyleConfig()


def test_malformed_yaml_falls_back(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text("styles: [unclosed\n", encoding='utf-8')
    assert load_config(str(path)) == ConverterConfig()


def test_invalid_values_fall_back(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text("images:\n  default_width: wide\n", encoding='utf-8')
    assert load_config(str(path)) == ConverterConfig()


def test_heading_style_names():
    styles = DocumentStyleConfig()
    assert styles.heading_style_name(1) == 'Heading 1'
    assert styles.heading_style_name(3) == 'Heading 3'
    assert styles.heading_style_name(4) == 'Heading 5'
    assert styles.heading_style_name(0) == 'Heading 5'
