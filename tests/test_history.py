"""
Tests for the history recorder.
"""

import json
from datetime import datetime

import pytest

from onlyoffice_bridge.errors import ValidationError
from onlyoffice_bridge.history import HistoryRecorder
from onlyoffice_bridge.models import Callback, Change, History, User
from onlyoffice_bridge.tokens import TokenService


def _callback(key="k1", created="2024-01-02 03:04:05", user_id="user1"):
    user = User(id=user_id, name="Test User")
    return Callback(
        status=2,
        key=key,
        history=History(
            server_version="7.5.0",
            created=created,
            key=key,
            user=user,
            changes=[Change(created=created, user=user)],
        ),
    )


@pytest.fixture
def recorder(disabled_tokens):
    return HistoryRecorder(disabled_tokens)


class TestRecord:
    def test_writes_indented_json(self, recorder, tmp_path):
        path = recorder.record(_callback(), tmp_path)

        assert path == tmp_path / ".history" / "k1" / "changes.json"
        text = path.read_text(encoding="utf-8")
        assert text.startswith('{\n  "')
        data = json.loads(text)
        assert data["serverVersion"] == "7.5.0"
        assert data["changes"][0]["user"]["id"] == "user1"

    def test_callback_without_history(self, recorder, tmp_path):
        path = recorder.record(Callback(status=2, key="bare"), tmp_path)
        assert json.loads(path.read_text(encoding="utf-8")) == {"changes": []}

    def test_empty_key_rejected(self, recorder, tmp_path):
        with pytest.raises(ValidationError):
            recorder.record(_callback(key=""), tmp_path)

    @pytest.mark.parametrize("key", ["../../escaped", "..", ".", "nested/key", "..\\escaped"])
    def test_key_must_be_single_path_component(self, recorder, tmp_path, key):
        storage_root = tmp_path / "storage"

        with pytest.raises(ValidationError, match="invalid document key"):
            recorder.record(_callback(key=key), storage_root)

        assert not (tmp_path / "escaped").exists()
        assert list(tmp_path.rglob("changes.json")) == []


class TestListVersions:
    def test_record_then_list(self, recorder, tmp_path):
        recorder.record(_callback(), tmp_path)

        versions = recorder.list_versions("report.docx", tmp_path)

        assert len(versions) == 1
        assert versions[0].version == "k1"
        assert versions[0].key == "k1"
        assert versions[0].created == datetime(2024, 1, 2, 3, 4, 5)
        assert versions[0].user.id == "user1"
        assert len(versions[0].changes) == 1

    def test_rewrite_same_key_overwrites(self, recorder, tmp_path):
        recorder.record(_callback(user_id="first"), tmp_path)
        recorder.record(_callback(created="2024-02-03 04:05:06", user_id="second"), tmp_path)

        versions = recorder.list_versions("report.docx", tmp_path)

        assert len(versions) == 1
        assert versions[0].user.id == "second"
        assert versions[0].created == datetime(2024, 2, 3, 4, 5, 6)
        assert recorder.count_versions(tmp_path) == 1

    def test_filename_does_not_filter(self, recorder, tmp_path):
        recorder.record(_callback(key="a"), tmp_path)
        recorder.record(_callback(key="b"), tmp_path)

        versions = recorder.list_versions("unrelated.xlsx", tmp_path)

        assert [v.version for v in versions] == ["a", "b"]

    def test_unparseable_created_is_none(self, recorder, tmp_path):
        recorder.record(_callback(created="yesterday"), tmp_path)
        assert recorder.list_versions("report.docx", tmp_path)[0].created is None

    def test_unreadable_entries_skipped(self, recorder, tmp_path):
        recorder.record(_callback(key="good"), tmp_path)
        broken = tmp_path / ".history" / "broken"
        broken.mkdir()
        (broken / "changes.json").write_text("{not json", encoding="utf-8")
        (tmp_path / ".history" / "empty").mkdir()

        versions = recorder.list_versions("report.docx", tmp_path)

        assert [v.version for v in versions] == ["good"]
        assert recorder.count_versions(tmp_path) == 3

    def test_no_history_directory(self, recorder, tmp_path):
        assert recorder.list_versions("report.docx", tmp_path) == []
        assert recorder.count_versions(tmp_path) == 0


class TestHistoryKey:
    def test_history_key_uses_token_service(self):
        service = TokenService(key_strategy="filename")
        recorder = HistoryRecorder(service)

        assert recorder.generate_history_key("a.docx") == service.generate_document_key("a.docx")
