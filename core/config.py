"""
配置文件 - SDK 配置管理
"""
import re
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


PRIVATE_KEY_PATTERN = re.compile(r"^[sp]-priv-[a-zA-Z0-9]+")


def is_valid_private_key(key: Optional[str]) -> bool:
    """私钥格式校验：s-priv-xxx（沙箱）或 p-priv-xxx（生产）"""
    if not key or not isinstance(key, str):
        return False
    return PRIVATE_KEY_PATTERN.match(key) is not None


class HttpTimeouts(BaseModel):
    connect: float = 1.0
    read: float = 10.0
    write: float = 10.0
    total: float = 20.0


class HttpRetry(BaseModel):
    # Only idempotent requests are retried
    max: int = 2
    base_backoff: float = 0.2


class PaygateSettings(BaseSettings):
    """SDK 配置"""

    # 基础配置
    SDK_VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)
    LOG_SETUP: bool = Field(default=False, description="导入日志模块时是否配置根 logger")

    # 网关配置
    PRIVATE_KEY: Optional[str] = Field(default=None, description="默认私钥，可在 Paygate(...) 中覆盖")
    MODE: str = Field(default="test", description="test | live")
    LOCALE: str = Field(default="de-DE")
    API_VERSION: str = Field(default="v1")
    URL_TEST: str = Field(default="https://dev-api.heidelpay.com")
    URL_LIVE: str = Field(default="https://api.heidelpay.com")

    # 分组配置：超时与重试采用嵌套模型
    timeouts: HttpTimeouts = Field(default_factory=HttpTimeouts)
    retry: HttpRetry = Field(default_factory=HttpRetry)

    model_config = SettingsConfigDict(
        env_prefix="PAYGATE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    @field_validator("PRIVATE_KEY")
    @classmethod
    def _validate_private_key(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not is_valid_private_key(v):
            raise ValueError("PRIVATE_KEY 格式无效，应为 s-priv-xxx 或 p-priv-xxx")
        return v

    @field_validator("MODE")
    @classmethod
    def _validate_mode(cls, v: str) -> str:
        mode = (v or "").lower()
        if mode not in {"test", "live"}:
            raise ValueError("MODE 只能为 test 或 live")
        return mode

    def base_url(self, mode: Optional[str] = None) -> str:
        """根据模式返回带 API 版本的网关地址"""
        url = self.URL_LIVE if (mode or self.MODE).lower() == "live" else self.URL_TEST
        return f"{url.rstrip('/')}/{self.API_VERSION}"


settings = PaygateSettings()
