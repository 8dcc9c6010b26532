"""
Configuration Management for Chart of Accounts

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The numbering rule and the debit/credit sign convention are configuration,
so a chart can be switched between conventions without touching the engine.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Flat-file persistence configuration."""
    
    model_config = SettingsConfigDict(
        env_prefix="COA_STORAGE_",
        extra="ignore"
    )
    
    structure_path: str = Field(
        default="accounts.txt",
        description="Path of the structural (chart of accounts) file"
    )
    transaction_suffix: str = Field(
        default="_transactions",
        min_length=1,
        description="Suffix added to the structural file stem for the transaction log"
    )
    indent_width: int = Field(
        default=4,
        ge=1,
        le=8,
        description="Spaces per depth level in the structural file"
    )
    encoding: str = Field(
        default="utf-8",
        description="Text encoding of persisted files"
    )


class LedgerSettings(BaseSettings):
    """Numbering policy and sign convention configuration."""
    
    model_config = SettingsConfigDict(
        env_prefix="COA_LEDGER_",
        extra="ignore"
    )
    
    numbering_policy: str = Field(
        default="fixed_width",
        pattern="^(fixed_width|digit_prefix)$",
        description="How an account number determines its parent"
    )
    account_number_width: int = Field(
        default=4,
        ge=2,
        le=12,
        description="Digits per account number (fixed_width policy only)"
    )
    root_digits: int = Field(
        default=1,
        ge=1,
        description="Significant digits that make an account a root"
    )
    sign_convention: str = Field(
        default="uniform",
        pattern="^(uniform|by_category)$",
        description="How debit/credit map to balance increase/decrease"
    )
    uniform_normal_side: str = Field(
        default="debit",
        description="Side that increases balances under the uniform convention"
    )
    
    @field_validator('uniform_normal_side')
    @classmethod
    def validate_normal_side(cls, v: str) -> str:
        """Only debit or credit are meaningful."""
        v = v.strip().lower()
        if v not in {"debit", "credit"}:
            raise ValueError(f"uniform_normal_side must be 'debit' or 'credit', got {v!r}")
        return v
    
    @model_validator(mode='after')
    def validate_root_digits(self) -> 'LedgerSettings':
        """Roots need fewer significant digits than a full number."""
        if (
            self.numbering_policy == "fixed_width"
            and self.root_digits >= self.account_number_width
        ):
            raise ValueError("root_digits must be smaller than account_number_width")
        return self


class AppSettings(BaseSettings):
    """
    Main application settings.
    
    Loads configuration from environment variables and .env file.
    """
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    # Logging
    debug_mode: bool = Field(
        default=False,
        description="Force DEBUG logging regardless of log_level"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Threshold for local structured logs"
    )
    
    # Audit trail
    audit_log_path: Optional[str] = Field(
        default=None,
        description="JSON-lines file for the audit trail (local logs only if unset)"
    )
    
    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug_mode else self.log_level


class Settings(BaseSettings):
    """
    Root settings container.
    
    Aggregates all sub-settings for easy access.
    """
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()
    
    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()
    
    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).
    
    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.
    
    Returns a dict of {setting_name: is_valid}, with a
    "<name>_error" entry for every section that failed.
    Useful for startup checks.
    """
    results = {}
    
    settings = get_settings()
    
    for name in ("storage", "ledger", "app"):
        try:
            _ = getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)
    
    return results
