"""Tests for the file-backed theme library."""

import json

import pytest

from cardmatch.config import Settings
from cardmatch.models.failure import CatalogValidationError, FailureKind
from cardmatch.models.theme import Difficulty, MatchMode
from cardmatch.services import theme_library
from cardmatch.services.theme_library import (
    InvalidThemeIdError,
    ThemeLibrary,
    ThemeNotFoundError,
    validate_theme_id,
)


@pytest.fixture
def themes_dir(tmp_path, document_factory, multi_document):
    (tmp_path / "numbers.json").write_text(json.dumps(document_factory(6)), encoding="utf-8")
    (tmp_path / "authors.json").write_text(json.dumps(multi_document), encoding="utf-8")
    return tmp_path


class TestThemeIdValidation:
    @pytest.mark.parametrize("theme_id", ["capitals", "spanish-verbs", "Set-2", "a1"])
    def test_valid_ids(self, theme_id: str) -> None:
        assert validate_theme_id(theme_id) == theme_id

    @pytest.mark.parametrize(
        "theme_id",
        ["", "../secrets", "a/b", "theme.json", "with space", "trailing\n", "under_score"],
    )
    def test_invalid_ids(self, theme_id: str) -> None:
        with pytest.raises(InvalidThemeIdError) as exc_info:
            validate_theme_id(theme_id)

        assert exc_info.value.status_code == 400
        assert exc_info.value.kind == FailureKind.INVALID_INPUT


class TestThemeLibrary:
    def test_available_ids(self, themes_dir) -> None:
        library = ThemeLibrary(themes_dir)

        assert library.available_ids() == ["authors", "numbers"]

    def test_missing_directory(self, tmp_path) -> None:
        library = ThemeLibrary(tmp_path / "nope")

        assert library.available_ids() == []
        assert library.list_themes() == []

    def test_get_loads_and_caches(self, themes_dir) -> None:
        library = ThemeLibrary(themes_dir)

        first = library.get("authors")
        (themes_dir / "authors.json").unlink()
        second = library.get("authors")

        assert first is second
        assert first.mode is MatchMode.ONE_TO_MANY

    def test_clear_cache_rereads(self, themes_dir) -> None:
        library = ThemeLibrary(themes_dir)
        library.get("authors")
        (themes_dir / "authors.json").unlink()

        library.clear_cache()

        with pytest.raises(ThemeNotFoundError):
            library.get("authors")

    def test_unknown_theme(self, themes_dir) -> None:
        library = ThemeLibrary(themes_dir)

        with pytest.raises(ThemeNotFoundError) as exc_info:
            library.get("missing")

        assert exc_info.value.status_code == 404

    def test_invalid_id_never_touches_disk(self, themes_dir) -> None:
        library = ThemeLibrary(themes_dir)

        with pytest.raises(InvalidThemeIdError):
            library.get("../numbers")

    def test_theme_without_id_takes_file_name(self, tmp_path, document_factory) -> None:
        document = document_factory(6)
        del document["id"]
        (tmp_path / "plain.json").write_text(json.dumps(document), encoding="utf-8")

        theme = ThemeLibrary(tmp_path).get("plain")

        assert theme.id == "plain"

    def test_invalid_json(self, tmp_path) -> None:
        (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(CatalogValidationError):
            ThemeLibrary(tmp_path).get("broken")

    def test_min_pairs_comes_from_config(self, tmp_path, document_factory) -> None:
        (tmp_path / "small.json").write_text(json.dumps(document_factory(4)), encoding="utf-8")
        library = ThemeLibrary(tmp_path, config=Settings(min_pairs=5))

        with pytest.raises(CatalogValidationError):
            library.get("small")


class TestListThemes:
    def test_list_themes(self, themes_dir) -> None:
        summaries = {summary.id: summary for summary in ThemeLibrary(themes_dir).list_themes()}

        assert set(summaries) == {"authors", "numbers"}
        authors = summaries["authors"]
        assert authors.pair_count == 3
        assert authors.mode is MatchMode.ONE_TO_MANY
        assert authors.tiers[Difficulty.EASY] == 5

    def test_broken_theme_is_skipped(self, themes_dir, caplog) -> None:
        (themes_dir / "broken.json").write_text('{"title": "x", "pairs": []}', encoding="utf-8")

        summaries = ThemeLibrary(themes_dir).list_themes()

        assert [summary.id for summary in summaries] == ["authors", "numbers"]
        assert any(record.getMessage() == "THEME_SKIPPED" for record in caplog.records)

    def test_non_utf8_theme_is_skipped(self, themes_dir) -> None:
        (themes_dir / "garbled.json").write_bytes(b'{"title":"\xff\xfe"}')
        library = ThemeLibrary(themes_dir)

        with pytest.raises(CatalogValidationError, match="not valid JSON"):
            library.get("garbled")
        assert [summary.id for summary in library.list_themes()] == ["authors", "numbers"]

    def test_unreadable_theme_is_skipped(self, themes_dir, monkeypatch) -> None:
        def denied(*_args, **_kwargs):
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr(theme_library, "open", denied, raising=False)
        library = ThemeLibrary(themes_dir)

        with pytest.raises(CatalogValidationError, match="could not be read"):
            library.get("numbers")
        assert library.list_themes() == []

    def test_directory_named_like_a_theme_is_ignored(self, themes_dir) -> None:
        (themes_dir / "folder.json").mkdir()
        library = ThemeLibrary(themes_dir)

        assert library.available_ids() == ["authors", "numbers"]
        assert [summary.id for summary in library.list_themes()] == ["authors", "numbers"]
