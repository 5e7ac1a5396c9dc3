# app.py
import logging
import os

import click
from flask import Flask, request, jsonify

# наши модули
import sheets
from lock import get_script_lock
from properties import SPREADSHEET_KEY, get_script_properties, initial_setup

# ----------------- КОНФИГ -----------------
SHEET_NAME = os.getenv("SHEET_NAME", "Sheet1")
PORT = int(os.getenv("PORT", "8080"))

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Flask-приложение (WSGI-сервер ищет переменную app)
app = Flask(__name__)


# ----------------- ВСПОМОГАТЕЛЬНЫЕ -----------------
def spreadsheet_id() -> str | None:
    # SPREADSHEET_ID из окружения важнее сохранённого через initial-setup
    return os.getenv("SPREADSHEET_ID") or get_script_properties().get_property(SPREADSHEET_KEY)


def result(payload: dict):
    # статус всегда 200, успех или ошибка видны только в теле
    return jsonify(payload), 200


# ----------------- РОУТЫ -----------------
@app.get("/")
def index():
    return jsonify({"ok": True, "service": "form-to-sheet"})


@app.get("/health")
def health():
    return jsonify({"ok": True})


@app.post("/")
@app.post("/exec")
def do_post():
    lock = get_script_lock()
    try:
        lock.wait_lock(lock.timeout_ms)

        doc = sheets.open_spreadsheet(spreadsheet_id())
        sheet = sheets.get_sheet_by_name(doc, SHEET_NAME)
        # request.values: сначала query string, потом форма; для повторов берётся первое значение
        next_row = sheets.append_form_row(sheet, request.values)

        return result({"result": "success", "row": next_row})

    except Exception as e:
        logger.exception("Не удалось записать заявку")
        return result({"result": "error", "error": str(e) or e.__class__.__name__})

    finally:
        lock.release_lock()


# ----------------- CLI -----------------
@app.cli.command("initial-setup")
@click.argument("spreadsheet")
def initial_setup_command(spreadsheet: str):
    """Запомнить таблицу (id или ссылку), куда писать заявки."""
    spreadsheet_id = initial_setup(spreadsheet)
    click.echo(f"Таблица сохранена: {spreadsheet_id}")


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=PORT)
