"""
Cafe Inventory Reconciliation Engine
Centralized Configuration Management

Pydantic settings with environment variable support. Each subsystem reads its
own prefixed group; the aggregate ``Settings`` is handed explicitly to the
store factory and the service builder.
"""

from functools import lru_cache
from typing import List

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreSettings(BaseSettings):
    """Tabular store backend configuration"""

    model_config = SettingsConfigDict(env_prefix="STORE_")

    backend: str = Field(default="memory", description="Store backend: memory, csv or sql")
    csv_path: str = Field(default="./data/tables", description="Directory holding one CSV per table")
    database_url: str = Field(default="sqlite:///./data/inventory.db", description="SQLAlchemy URL for the sql backend")
    echo: bool = Field(default=False, description="Echo SQL statements")

    # Bounded retry for transient store errors
    max_retries: int = Field(default=1, description="Retries after a transient store error")
    rate_limit_backoff_seconds: float = Field(default=5.0, description="Backoff after a rate-limit response")
    server_error_backoff_seconds: float = Field(default=1.0, description="Backoff after a generic server error")

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Validate backend name"""
        allowed = ["memory", "csv", "sql"]
        if v.lower() not in allowed:
            raise ValueError(f"Store backend must be one of: {allowed}")
        return v.lower()


class TableSettings(BaseSettings):
    """Logical to physical table names"""

    model_config = SettingsConfigDict(env_prefix="TABLE_")

    catalog: str = Field(default="Catalog")
    purchases: str = Field(default="Purchases")
    usage: str = Field(default="Inventory_Usage")
    adjustments: str = Field(default="Inventory_Adjustments")
    recipes: str = Field(default="Recipes")
    sales: str = Field(default="Sales_Daily")
    shopping_actions: str = Field(default="Shopping_Actions")
    shopping_list: str = Field(default="Shopping_List")
    shopping_manual: str = Field(default="Shopping_Manual")
    email_log: str = Field(default="Reorder_Email_Log")
    subscribers: str = Field(default="Subscribers")


class BusinessSettings(BaseSettings):
    """Business-day configuration"""

    model_config = SettingsConfigDict(env_prefix="BUSINESS_")

    timezone: str = Field(default="America/New_York", description="Civil timezone defining the business date")
    require_usage_ledger: bool = Field(
        default=True,
        description="Refuse reorder runs while the usage ledger is empty",
    )


class NotificationSettings(BaseSettings):
    """Reorder email configuration"""

    model_config = SettingsConfigDict(env_prefix="REORDER_EMAIL_")

    cooldown_minutes: int = Field(default=15, description="Minimum minutes between two sends")
    sender: str = Field(default="inventory@localhost", description="From address")
    recipients: List[str] = Field(default_factory=list, description="Fallback recipients when Subscribers is empty")
    actor: str = Field(default="internal_key", description="Actor recorded in the email log")


class VirtualItemRule(BaseModel):
    """
    A menu item whose recipe depends on the selected modifiers.

    ``choices`` is the required modifier group (first match wins),
    ``substitutions`` are optional swaps appended as a suffix.
    """

    base_item: str
    choices: List[str]
    unknown_choice: str = "unknown"
    substitutions: List[str] = Field(default_factory=list)


def _default_virtual_items() -> List[VirtualItemRule]:
    return [
        VirtualItemRule(
            base_item="the outkast",
            choices=["pork bacon", "turkey bacon", "pork sausage", "turkey sausage", "egg"],
            unknown_choice="unknown protein",
            substitutions=["cheddar"],
        )
    ]


class SalesSettings(BaseSettings):
    """Sales ingestion configuration"""

    model_config = SettingsConfigDict(env_prefix="SALES_")

    default_source: str = Field(default="toast", description="Source tag written on ingested sales rows")
    virtual_items: List[VirtualItemRule] = Field(default_factory=_default_virtual_items)


class MonitoringSettings(BaseSettings):
    """Logging configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", description="Log format: json or console")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="cafe-inventory", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    store: StoreSettings = Field(default_factory=StoreSettings)
    tables: TableSettings = Field(default_factory=TableSettings)
    business: BusinessSettings = Field(default_factory=BusinessSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    sales: SalesSettings = Field(default_factory=SalesSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.app_env == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
