"""Tests for the JLPT CSV parser and importer."""
from __future__ import annotations

import os
from pathlib import Path

import pytest

from kotoba.errors import ServiceError
from kotoba.parsers.jlpt_csv_parser import (
    decode_csv,
    import_jlpt_csv,
    import_jlpt_files,
    is_header,
    parse_jlpt_csv,
)

CSV_WITH_HEADER = """expression,reading,meaning
会う,あう,to meet
青い,あおい,blue
"赤い","あかい","red, crimson"
"""


class TestHeader:
    @pytest.mark.parametrize("row", [
        ["expression", "reading"],
        ["Word", "Reading", "Meaning"],
        ["kanji", "kana"],
        ["単語", "読み方", "意味"],
    ])
    def test_detected(self, row):
        assert is_header(row)

    def test_single_column_not_header(self):
        assert not is_header(["expression"])

    def test_data_row(self):
        assert not is_header(["会う", "あう", "to meet"])


class TestParse:
    def test_with_header(self):
        words, skipped = parse_jlpt_csv(CSV_WITH_HEADER, "N5")
        assert [w.word for w in words] == ["会う", "青い", "赤い"]
        assert words[2].meaning == "red, crimson"
        assert all(w.source == "JLPT" and w.source_detail == "N5" for w in words)
        assert skipped == 0

    def test_without_header(self):
        words, _ = parse_jlpt_csv("会う,あう,to meet\n", "N5")
        assert len(words) == 1

    def test_missing_meaning_becomes_dash(self):
        words, _ = parse_jlpt_csv("会う,あう\n青い,あおい,\n", "N5")
        assert [w.meaning for w in words] == ["-", "-"]

    def test_skips_incomplete_rows(self):
        words, skipped = parse_jlpt_csv("会う,あう,to meet\nonly\n,あおい,blue\n赤い, ,red\n", "N5")
        assert len(words) == 1
        assert skipped == 3

    def test_strips_whitespace_and_bom(self):
        words, _ = parse_jlpt_csv("\ufeff 会う , あう , to meet \n", "N5")
        assert (words[0].word, words[0].hiragana, words[0].meaning) == ("会う", "あう", "to meet")

    @pytest.mark.parametrize("text", ["", "\n\n"])
    def test_empty(self, text):
        with pytest.raises(ServiceError) as exc:
            parse_jlpt_csv(text, "N5")
        assert exc.value.msg == "CSV file is empty."
        assert exc.value.status_code == 400


class TestImport:
    def test_inserts(self, tmp_db):
        assert import_jlpt_csv(tmp_db, "N5", CSV_WITH_HEADER) == 3
        assert tmp_db.count_quiz_words("N5") == 3

    def test_duplicates_skipped(self, tmp_db):
        import_jlpt_csv(tmp_db, "N5", CSV_WITH_HEADER)
        assert import_jlpt_csv(tmp_db, "N5", CSV_WITH_HEADER) == 0
        assert tmp_db.count_quiz_words("N5") == 3

    def test_duplicates_within_file(self, tmp_db):
        assert import_jlpt_csv(tmp_db, "N5", "会う,あう,to meet\n会う,あう,to see\n") == 1

    def test_same_word_other_level(self, tmp_db):
        import_jlpt_csv(tmp_db, "N5", CSV_WITH_HEADER)
        assert import_jlpt_csv(tmp_db, "N4", CSV_WITH_HEADER) == 3

    def test_decode_utf8(self):
        assert decode_csv("猫,ねこ,cat\n".encode("utf-8")) == "猫,ねこ,cat\n"

    def test_decode_rejects_shift_jis(self):
        with pytest.raises(ServiceError) as exc:
            decode_csv("猫,ねこ,cat\n".encode("shift_jis"))
        assert exc.value.status_code == 400
        assert exc.value.msg == "CSV file must be UTF-8 encoded."


class TestImportFiles:
    def _write(self, settings, name, text) -> Path:
        root = settings.jlpt_data_full_path
        root.mkdir(parents=True, exist_ok=True)
        path = root / name
        path.write_text(text, encoding="utf-8")
        return path

    def test_imports_present_files(self, tmp_db, settings):
        self._write(settings, "n5.csv", CSV_WITH_HEADER)
        self._write(settings, "n3.csv", "猫,ねこ,cat\n")
        assert import_jlpt_files(tmp_db, settings) == {"N5": 3, "N3": 1}

    def test_unchanged_files_skipped(self, tmp_db, settings):
        self._write(settings, "n5.csv", CSV_WITH_HEADER)
        import_jlpt_files(tmp_db, settings)
        assert import_jlpt_files(tmp_db, settings) == {}

    def test_changed_file_reimported(self, tmp_db, settings):
        path = self._write(settings, "n5.csv", CSV_WITH_HEADER)
        import_jlpt_files(tmp_db, settings)
        path.write_text(CSV_WITH_HEADER + "雨,あめ,rain\n", encoding="utf-8")
        st = path.stat()
        os.utime(path, ns=(st.st_atime_ns, st.st_mtime_ns + 1_000_000_000))
        assert import_jlpt_files(tmp_db, settings) == {"N5": 1}
        assert tmp_db.count_quiz_words("N5") == 4

    def test_force_reads_unchanged(self, tmp_db, settings):
        self._write(settings, "n5.csv", CSV_WITH_HEADER)
        import_jlpt_files(tmp_db, settings)
        assert import_jlpt_files(tmp_db, settings, only_changed=False) == {"N5": 0}

    def test_empty_file_does_not_abort(self, tmp_db, settings):
        self._write(settings, "n5.csv", "")
        self._write(settings, "n4.csv", "猫,ねこ,cat\n")
        assert import_jlpt_files(tmp_db, settings) == {"N5": 0, "N4": 1}

    def test_non_utf8_file_does_not_abort(self, tmp_db, settings):
        root = settings.jlpt_data_full_path
        root.mkdir(parents=True, exist_ok=True)
        (root / "n5.csv").write_bytes("会う,あう,to meet\n".encode("shift_jis"))
        self._write(settings, "n4.csv", "猫,ねこ,cat\n")
        assert import_jlpt_files(tmp_db, settings) == {"N5": 0, "N4": 1}
        assert tmp_db.count_quiz_words("N5") == 0
        assert tmp_db.count_quiz_words("N4") == 1

    def test_bundled_data(self, tmp_db, settings):
        settings.jlpt_data_dir = "data/jlpt"
        imported = import_jlpt_files(tmp_db, settings)
        assert imported["N5"] >= 4
        assert tmp_db.count_quiz_words("N5") == imported["N5"]
