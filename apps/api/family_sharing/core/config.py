from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_env: str = "dev"
    root_path: str = ""
    log_level: str = "INFO"

    store_backend: str = "sql"  # sql | instant

    postgres_db: str = "family_sharing"
    postgres_user: str = "family_user"
    postgres_password: str = "family_pass"
    postgres_host: str = "db"
    postgres_port: int = 5432
    database_url_override: str = ""

    # InstantDB (identity provider, and the remote store when store_backend=instant)
    instant_api_url: str = "https://api.instantdb.com"
    instant_app_id: str = ""
    instant_admin_token: str = ""

    # Resend (invitation emails)
    resend_api_url: str = "https://api.resend.com"
    resend_api_key: str = ""
    invite_from_address: str = "Mighty <noreply@mighty-app.com>"

    share_link_base: str = "mightyapp://invite/"
    invitation_ttl_days: int = 7
    # None leaves timeouts to the upstream services.
    upstream_timeout_seconds: float | None = None

    cors_allow_origins: list[str] = [
        "https://mighty-app.com",
        "https://www.mighty-app.com",
        "http://localhost:3000",
        "http://localhost:8080",
    ]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+psycopg2://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


settings = Settings()
