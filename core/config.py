"""
配置文件 - 项目配置管理
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field, field_validator
from typing import Optional


class PersistenceSettings(BaseModel):
    type: str = "local"  # local, remote
    # Local durable storage
    local_base_path: str = "./data"
    session_file: str = "session.json"
    # Remote API
    remote_base_url: str = "http://localhost:8000"
    # None 表示沿用 httpx 的默认超时
    remote_timeout: Optional[float] = None
    remote_max_retries: int = 0


class Settings(BaseSettings):
    """项目配置"""

    # 基础配置
    PROJECT_NAME: str = Field(default="Mine Equipment Ledger")
    VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=True)
    ENVIRONMENT: str = Field(default="development")

    persistence: PersistenceSettings = Field(default_factory=PersistenceSettings)

    # 到期提醒窗口（天）与概览列表长度
    INSPECTION_ALERT_DAYS: int = Field(default=90)
    RECENT_ITEMS_LIMIT: int = Field(default=5)

    # CORS配置
    CORS_ORIGINS: list = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
    )

    # pydantic-settings v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """允许 JSON 字符串或逗号分隔字符串两种格式。"""
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("[") and s.endswith("]"):
                import json
                try:
                    arr = json.loads(s)
                except ValueError:
                    arr = None
                if isinstance(arr, list):
                    return arr
            if "," in s:
                return [item.strip() for item in s.split(",") if item.strip()]
            return [s]
        return v


settings = Settings()
