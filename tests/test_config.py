import pytest

from anchorscope import config


def test_max_depth_default(monkeypatch):
    monkeypatch.delenv("ANCHORSCOPE_MAX_DEPTH", raising=False)
    assert config.max_depth() == config.DEFAULT_MAX_DEPTH == 5


def test_max_depth_env_override(monkeypatch):
    monkeypatch.setenv("ANCHORSCOPE_MAX_DEPTH", "7")
    assert config.max_depth() == 7


def test_max_depth_clamped(monkeypatch):
    monkeypatch.setenv("ANCHORSCOPE_MAX_DEPTH", "500")
    assert config.max_depth() == 100


def test_max_depth_invalid_value(monkeypatch):
    monkeypatch.setenv("ANCHORSCOPE_MAX_DEPTH", "invalid")
    assert config.max_depth() == 5


@pytest.mark.parametrize("raw,expected", [("0", 1), ("+9", 9), ("-3", 5), (" 4", 5), ("99999999999999999999999", 5)])
def test_max_depth_parsing_edges(monkeypatch, raw, expected):
    monkeypatch.setenv("ANCHORSCOPE_MAX_DEPTH", raw)
    assert config.max_depth() == expected


def test_max_file_size_default_and_clamp(monkeypatch):
    monkeypatch.delenv("ANCHORSCOPE_MAX_FILE_SIZE", raising=False)
    assert config.max_file_size() == 100 * 1024 * 1024
    monkeypatch.setenv("ANCHORSCOPE_MAX_FILE_SIZE", str(5 * 1024 * 1024 * 1024))
    assert config.max_file_size() == 1024 * 1024 * 1024
    monkeypatch.setenv("ANCHORSCOPE_MAX_FILE_SIZE", "0")
    assert config.max_file_size() == 1


def test_max_nesting_depth(monkeypatch):
    monkeypatch.delenv("ANCHORSCOPE_MAX_NESTING_DEPTH", raising=False)
    assert config.max_nesting_depth() == 100
    monkeypatch.setenv("ANCHORSCOPE_MAX_NESTING_DEPTH", "5000")
    assert config.max_nesting_depth() == 1000
    monkeypatch.setenv("ANCHORSCOPE_MAX_NESTING_DEPTH", "12")
    assert config.max_nesting_depth() == 12


def test_allowed_tools_default(monkeypatch):
    monkeypatch.delenv("ANCHORSCOPE_ALLOWED_TOOLS", raising=False)
    assert config.allowed_tools() == ["sed", "awk", "perl", "python3", "node"]


def test_allowed_tools_from_env(monkeypatch):
    monkeypatch.setenv("ANCHORSCOPE_ALLOWED_TOOLS", " sed , ,awk,")
    assert config.allowed_tools() == ["sed", "awk"]


def test_allowed_tools_empty_env(monkeypatch):
    monkeypatch.setenv("ANCHORSCOPE_ALLOWED_TOOLS", "")
    assert config.allowed_tools() == []