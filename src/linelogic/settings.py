from functools import lru_cache
from typing import Literal, final

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from yarl import URL


def _split_csv(value: str, lower: bool = True) -> list[str]:
    items = [item.strip() for item in value.split(",") if item.strip()]
    if lower:
        return [item.lower() for item in items]
    return items


class PostgresConfig(BaseModel):
    user: str
    password: str
    host: str
    port: int = 5432
    db: str

    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout_seconds: int = 30
    echo_sql: bool = False


class APIConfig(BaseModel):
    title: str = "LineLogic API"
    version: str = "1.0.0"
    port: int = 8000
    host: str = "0.0.0.0"
    allowed_hosts: list[str] = Field(default_factory=lambda: ["*"])
    api_key: str | None = None


class AuthConfig(BaseModel):
    base_url: str = "http://localhost:9999/auth/v1"
    api_key: str = ""
    timeout_seconds: float = 10.0
    signup_bonus_credits: int = 10
    admin_emails: str = ""

    def admin_email_list(self) -> list[str]:
        return _split_csv(self.admin_emails)


class ScoringWeights(BaseModel):
    fraud_name: int = 1000
    disallowed_domain: int = 500
    missing_user_agent: int = 150
    automation_user_agent: int = 250
    recent_ip_attempt: int = 40
    recent_ip_attempt_cap: int = 200
    prior_fraud_record: int = 100
    prior_fraud_record_cap: int = 400
    email_reused_from_other_ip: int = 200


class FraudConfig(BaseModel):
    ban_score_threshold: int = 1000
    block_score_threshold: int = 500
    review_score_threshold: int = 200
    banned_ip_score: int = 1000
    system_error_score: int = 999

    signup_rate_window_seconds: int = 24 * 60 * 60
    signup_rate_max_attempts: int = 5
    edge_rate_window_seconds: int = 60 * 60
    edge_rate_max_attempts: int = 10

    protected_path_prefixes: list[str] = Field(
        default_factory=lambda: [
            "/register",
            "/login",
            "/api/auth/signup",
            "/api/auth/signin",
        ]
    )
    signup_path_markers: list[str] = Field(
        default_factory=lambda: ["register", "signup"]
    )
    client_ip_headers: list[str] = Field(
        default_factory=lambda: [
            "x-forwarded-for",
            "x-real-ip",
            "x-client-ip",
            "cf-connecting-ip",
            "true-client-ip",
            "forwarded",
        ]
    )
    fallback_client_ip: str = "127.0.0.1"

    store_timeout_seconds: float = 5.0

    fraud_name_patterns: str = (
        "fraud,fake,scam,test,bot,spam,asdf,qwerty,hacker,admin,null,undefined"
    )
    blocked_email_domains: str = (
        "mailinator.com,guerrillamail.com,tempmail.com,throwaway.email,yopmail.com,"
        "10minutemail.com,trashmail.com,sharklasers.com,maildrop.cc,getnada.com,"
        "dispostable.com,fakeinbox.com,temp-mail.org,burnermail.io"
    )
    allowed_email_domains: str = ""
    dot_insensitive_domains: str = "gmail.com,googlemail.com"
    recent_attempt_window_seconds: int = 24 * 60 * 60
    prior_fraud_window_seconds: int = 7 * 24 * 60 * 60

    weights: ScoringWeights = ScoringWeights()

    def fraud_name_pattern_list(self) -> list[str]:
        return _split_csv(self.fraud_name_patterns)

    def blocked_email_domain_set(self) -> set[str]:
        return set(_split_csv(self.blocked_email_domains))

    def allowed_email_domain_set(self) -> set[str]:
        return set(_split_csv(self.allowed_email_domains))

    def dot_insensitive_domain_set(self) -> set[str]:
        return set(_split_csv(self.dot_insensitive_domains))


@final
class Config(BaseSettings):
    model_config: SettingsConfigDict = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="APP__",
        env_nested_delimiter="__",
        extra="ignore",
    )

    env: Literal["local", "dev", "prod"] = "local"

    api: APIConfig = APIConfig()
    auth: AuthConfig = AuthConfig()
    fraud: FraudConfig = FraudConfig()

    postgres: PostgresConfig

    @property
    def database_url(self) -> str:
        host = "localhost" if self.env == "local" else self.postgres.host
        return URL.build(
            scheme="postgresql+asyncpg",
            user=self.postgres.user,
            password=self.postgres.password,
            host=host,
            port=self.postgres.port,
            path=f"/{self.postgres.db}",
        ).human_repr()


@lru_cache
def get_config() -> Config:
    return Config()
