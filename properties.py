# properties.py
import json
import logging
import os
import tempfile

from gspread.utils import extract_id_from_url

logger = logging.getLogger(__name__)

# Ключ, под которым хранится id таблицы
SPREADSHEET_KEY = "key"

DEFAULT_PROPERTIES_PATH = os.path.join(
    os.path.expanduser("~"), ".form_to_sheet", "properties.json"
)


class ScriptProperties:
    """
    Простое хранилище ключ/значение в JSON-файле.
    Файл создаётся при первой записи.
    """

    def __init__(self, path: str):
        self.path = path

    def get_properties(self) -> dict:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        if not isinstance(data, dict):
            raise RuntimeError(f"Файл свойств повреждён: {self.path}")
        return data

    def get_property(self, key: str) -> str | None:
        return self.get_properties().get(key)

    def set_property(self, key: str, value: str):
        data = self.get_properties()
        data[key] = value

        folder = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(folder, exist_ok=True)
        # пишем во временный файл рядом и подменяем, чтобы не оставить половину JSON
        fd, tmp_path = tempfile.mkstemp(prefix=".properties_", suffix=".json", dir=folder)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except Exception:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise


def get_script_properties() -> ScriptProperties:
    return ScriptProperties(os.getenv("SCRIPT_PROPERTIES_PATH") or DEFAULT_PROPERTIES_PATH)


def initial_setup(spreadsheet: str, props: ScriptProperties | None = None) -> str:
    """
    Запоминает таблицу, в которую будут писаться заявки.
    spreadsheet — id таблицы или полная ссылка на неё.
    """
    spreadsheet = (spreadsheet or "").strip()
    if not spreadsheet:
        raise ValueError("Не указан id или ссылка на таблицу")

    if spreadsheet.startswith("http"):
        spreadsheet_id = extract_id_from_url(spreadsheet)
    else:
        spreadsheet_id = spreadsheet

    props = props or get_script_properties()
    props.set_property(SPREADSHEET_KEY, spreadsheet_id)
    logger.info("Таблица %s сохранена в %s", spreadsheet_id, props.path)
    return spreadsheet_id
