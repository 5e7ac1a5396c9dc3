import pytest


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    monkeypatch.setenv("LOCK_PATH", str(tmp_path / "locks" / "sheet.lock"))
    monkeypatch.setenv("SCRIPT_PROPERTIES_PATH", str(tmp_path / "properties.json"))
    monkeypatch.delenv("SPREADSHEET_ID", raising=False)
    monkeypatch.delenv("GSHEET_CREDENTIALS_JSON", raising=False)
    return tmp_path
