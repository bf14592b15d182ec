import json

import pytest

from clawsetup.documents import ConfigRepository, ProfileRepository
from clawsetup.errors import MalformedDocument


def test_missing_file_loads_as_empty(tmp_path):
    assert ConfigRepository(tmp_path / "openclaw.json").load() == {}


def test_save_writes_pretty_json_and_creates_parents(tmp_path):
    path = tmp_path / "agents" / "main" / "agent" / "auth-profiles.json"
    repo = ProfileRepository(path)

    repo.save({"version": 1, "profiles": {}, "lastGood": {}})

    text = path.read_text(encoding="utf-8")
    assert text.endswith("\n")
    assert '\n  "profiles": {}' in text
    assert repo.load() == {"version": 1, "profiles": {}, "lastGood": {}}


def test_invalid_json_is_malformed(tmp_path):
    path = tmp_path / "openclaw.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(MalformedDocument):
        ConfigRepository(path).load()


def test_top_level_array_is_malformed(tmp_path):
    path = tmp_path / "openclaw.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(MalformedDocument):
        ConfigRepository(path).load()


def test_managed_section_with_wrong_type_is_malformed(tmp_path):
    path = tmp_path / "openclaw.json"
    path.write_text(json.dumps({"gateway": {"auth": {"token": 42}}}), encoding="utf-8")
    with pytest.raises(MalformedDocument, match="gateway/auth/token"):
        ConfigRepository(path).load()


def test_foreign_sections_are_accepted(tmp_path):
    path = tmp_path / "openclaw.json"
    document = {"skills": ["anything"], "gateway": {"port": 18789}}
    path.write_text(json.dumps(document), encoding="utf-8")
    assert ConfigRepository(path).load() == document


def test_save_refuses_invalid_document(tmp_path):
    repo = ProfileRepository(tmp_path / "auth-profiles.json")
    with pytest.raises(MalformedDocument):
        repo.save({"lastGood": {"openai": 1}})
    assert not repo.exists()
