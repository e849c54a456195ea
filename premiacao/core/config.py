from pydantic import Field
from pydantic_settings import BaseSettings
from typing import List

from premiacao.bonus.scales import TeamStrategy

class Settings(BaseSettings):
    APP_NAME: str = Field("PremiacaoKPI", description="Logger namespace and page title")
    DATA_DIR: str = Field("./data", description="Root folder for roster, history and audit files")
    AUDIT_LOG_PATH: str = Field("./data/logs", description="Folder for rotating tenant logs")
    LOG_LEVEL: str = "INFO"

    # "derived": team receives half of the manager percentage (monthly and quarterly KPIs)
    # "table": team uses its own explicit tables
    TEAM_SCALE_STRATEGY: TeamStrategy = "derived"

    # Import / export
    CURRENCY_SYMBOL: str = "R$"
    EXPORT_DELIMITER: str = ";"
    IMPORT_ENCODINGS: List[str] = ["utf-8-sig", "ISO-8859-1"]
    HISTORY_MONTHS: int = 12

settings = Settings()
