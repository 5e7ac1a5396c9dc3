# sheets.py
import json
import logging
import os
from datetime import datetime

import gspread
from google.oauth2.service_account import Credentials

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

# Колонка с таким заголовком заполняется текущим временем
DATE_HEADER = "Date"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class SheetNotFound(Exception):
    pass


class NoHeaders(Exception):
    pass


def _credentials() -> Credentials:
    """
    GSHEET_CREDENTIALS_JSON — либо сам JSON сервисного аккаунта, либо путь к файлу с ним.
    """
    creds_json = (os.getenv("GSHEET_CREDENTIALS_JSON") or "").strip()
    if not creds_json:
        raise RuntimeError("GSHEET_CREDENTIALS_JSON is not set")
    if creds_json.startswith("{"):
        return Credentials.from_service_account_info(json.loads(creds_json), scopes=SCOPES)
    return Credentials.from_service_account_file(creds_json, scopes=SCOPES)


def open_spreadsheet(key: str) -> gspread.Spreadsheet:
    if not key:
        raise RuntimeError("Таблица не настроена: выполните initial-setup или задайте SPREADSHEET_ID")
    gc = gspread.authorize(_credentials())
    return gc.open_by_key(key)


def get_sheet_by_name(spreadsheet, name: str):
    try:
        return spreadsheet.worksheet(name)
    except gspread.WorksheetNotFound:
        raise SheetNotFound(f"Лист '{name}' не найден") from None


def build_row(headers: list, params, now: datetime) -> list:
    """Значения строки в порядке заголовков. Неизвестные колонки остаются пустыми."""
    row = []
    for header in headers:
        if header == DATE_HEADER:
            row.append(now.strftime(DATE_FORMAT))
        else:
            row.append(params.get(header, ""))
    return row


def append_form_row(worksheet, params, now: datetime | None = None) -> int:
    """
    Дописывает заявку строкой под последней заполненной строкой листа.
    Возвращает номер записанной строки (с 1).
    """
    values = worksheet.get_all_values()
    if not values or not any(str(v).strip() for v in values[0]):
        raise NoHeaders(f"На листе '{worksheet.title}' нет строки заголовков")

    # первая строка, дополненная до самой широкой строки листа
    width = max(len(r) for r in values)
    headers = list(values[0]) + [""] * (width - len(values[0]))

    # get_all_values отрезает пустые строки в конце
    next_row = len(values) + 1

    if next_row > worksheet.row_count:
        worksheet.add_rows(next_row - worksheet.row_count)

    row = build_row(headers, params, now or datetime.now())
    worksheet.update(
        range_name=f"A{next_row}",
        values=[row],
        # как setValues: строка с "=" становится формулой, даты распознаются
        value_input_option="USER_ENTERED",
    )
    logger.info("Заявка записана в '%s', строка %d", worksheet.title, next_row)
    return next_row
