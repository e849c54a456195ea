import logging
import math
import os
import re
import json
from datetime import date
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, List, Optional, Tuple

from premiacao.core.config import settings

MONTH_NAMES_PT = [
    "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
    "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro",
]

def mkdir_safe(path: str):
    Path(path).mkdir(parents=True, exist_ok=True)

def atomic_write_json(path: str, obj: Any):
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    tmp = p.with_suffix(".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, default=str, ensure_ascii=False)
    os.replace(str(tmp), str(p))

def setup_logging(tenant_id: str = "system", *, log_level: str = None):
    logger_name = f"{settings.APP_NAME}.{tenant_id}"
    logger = logging.getLogger(logger_name)
    if logger.handlers:
        return logger
    level = log_level or settings.LOG_LEVEL
    logger.setLevel(getattr(logging, level.upper()))
    audit_dir = settings.AUDIT_LOG_PATH
    mkdir_safe(audit_dir)
    logfile = Path(audit_dir) / f"{tenant_id}.log"
    handler = RotatingFileHandler(str(logfile), maxBytes=10_000_000, backupCount=5, encoding="utf-8")
    formatter = logging.Formatter('%(asctime)s %(levelname)s %(name)s %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    if os.getenv("DEV", "").lower() in ("1","true","yes"):
        ch = logging.StreamHandler()
        ch.setFormatter(formatter)
        logger.addHandler(ch)
    logger.propagate = False
    return logger

_NUMBER_PREFIX = re.compile(r"^[-+]?\d*\.?\d+(?:[eE][-+]?\d+)?")

def parse_brl_number(val: Any) -> float:
    """
    Lenient number parser for spreadsheet cells.

    Accepts "R$ 1.234,56", "97,5%", "97.6" or plain numbers. Anything that
    cannot be read as a number becomes 0.0.
    """
    if val is None:
        return 0.0
    if isinstance(val, (int, float)) and not isinstance(val, bool):
        return float(val) if math.isfinite(val) else 0.0
    clean = re.sub(r"(R\$|\s)", "", str(val))
    if not clean or clean == "0":
        return 0.0
    if "," in clean and "." in clean:
        clean = clean.replace(".", "").replace(",", ".")
    elif "," in clean:
        clean = clean.replace(",", ".")
    match = _NUMBER_PREFIX.match(clean)
    if not match:
        return 0.0
    result = float(match.group(0))
    return result if math.isfinite(result) else 0.0

def format_brl(valor: float, symbol: Optional[str] = None) -> str:
    symbol = symbol or settings.CURRENCY_SYMBOL
    sign = "-" if valor < 0 else ""
    inteiro, centavos = divmod(int(round(abs(valor) * 100)), 100)
    s_int = f"{inteiro:,}".replace(",", ".")
    return f"{sign}{symbol} {s_int},{centavos:02d}"

def format_decimal_comma(valor: float, places: int = 2) -> str:
    return f"{valor:.{places}f}".replace(".", ",")

def month_key(d: date) -> str:
    return f"{d.year}-{d.month:02d}"

def month_label(key: str) -> str:
    year, month = key.split("-")
    return f"{MONTH_NAMES_PT[int(month) - 1]} de {year}"

def month_options(count: int = None, today: Optional[date] = None) -> List[Tuple[str, str]]:
    """Last `count` months as (YYYY-MM, label), newest first."""
    count = count or settings.HISTORY_MONTHS
    today = today or date.today()
    options = []
    year, month = today.year, today.month
    for _ in range(count):
        key = f"{year}-{month:02d}"
        options.append((key, month_label(key)))
        month -= 1
        if month == 0:
            month = 12
            year -= 1
    return options
