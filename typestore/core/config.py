from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

class Settings(BaseSettings):
    databaseUrl: str = "sqlite+aiosqlite:///./typestore.db"
    schemaPath: Optional[str] = None # JSON schema document loaded at startup
    materializeOnStartup: bool = True
    echoSql: bool = False
    defaultLimit: int = 100
    maxLimit: int = 1000
    logLevel: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
