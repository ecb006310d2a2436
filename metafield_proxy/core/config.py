from functools import lru_cache
from typing import List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(raw: Optional[str]) -> List[str]:
    return [part.strip() for part in (raw or "").split(",") if part.strip()]


class Settings(BaseSettings):
    # BigCommerce Admin REST
    bc_store_hash: Optional[str] = Field(None, validation_alias="BC_STORE_HASH")
    bc_admin_api_token: Optional[str] = Field(
        None, validation_alias=AliasChoices("BC_ADMIN_API_TOKEN", "BC_ADMIN_TOKEN")
    )
    bc_oauth_client_id: Optional[str] = Field(None, validation_alias="BC_OAUTH_CLIENT_ID")
    bc_api_base_url: str = Field("https://api.bigcommerce.com/stores", validation_alias="BC_API_BASE_URL")
    variants_page_limit: int = Field(250, validation_alias="BC_VARIANTS_PAGE_LIMIT")

    # BigCommerce Storefront GraphQL
    bc_sf_token: Optional[str] = Field(None, validation_alias="BC_SF_TOKEN")
    bc_sf_graphql_endpoint: Optional[str] = Field(None, validation_alias="BC_SF_GRAPHQL_ENDPOINT")
    bc_channel_id: Optional[str] = Field(None, validation_alias="BC_CHANNEL_ID")

    # Metafield lookup defaults
    metafield_namespace: str = Field("SecondaryDesc", validation_alias="METAFIELD_NAMESPACE")
    metafield_key: str = Field("Secondary Attribute Description", validation_alias="METAFIELD_KEY")
    storefront_metafield_keys: str = Field(
        "Secondary Attribute Description", validation_alias="STOREFRONT_METAFIELD_KEYS"
    )

    # Caller checks
    allowed_origins: str = Field("", validation_alias="ALLOWED_ORIGINS")
    proxy_api_key: Optional[str] = Field(None, validation_alias="PROXY_API_KEY")

    # HTTP
    http_timeout: float = Field(30.0, validation_alias="HTTP_TIMEOUT")

    # API
    api_host: str = Field("0.0.0.0", validation_alias="API_HOST")
    api_port: int = Field(8000, validation_alias="API_PORT")
    debug: bool = Field(False, validation_alias="DEBUG")
    enable_diagnostics: bool = Field(False, validation_alias="ENABLE_DIAGNOSTICS")

    # App
    app_name: str = Field("Metafield Lookup Proxy", validation_alias="APP_NAME")
    version: str = Field("1.0.0", validation_alias="VERSION")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
        env_ignore_empty=True,
        extra="ignore",
    )

    @property
    def allowed_origin_list(self) -> List[str]:
        return _split_csv(self.allowed_origins)

    @property
    def storefront_keys(self) -> List[str]:
        return _split_csv(self.storefront_metafield_keys)

    @property
    def admin_configured(self) -> bool:
        return bool(self.bc_store_hash and self.bc_admin_api_token)

    @property
    def storefront_configured(self) -> bool:
        return bool(self.bc_store_hash and self.bc_sf_token)

    @property
    def storefront_graphql_endpoint(self) -> str:
        """Explicit override wins, otherwise the store's canonical storefront URL."""
        if self.bc_sf_graphql_endpoint:
            return self.bc_sf_graphql_endpoint
        return f"https://store-{self.bc_store_hash}.mybigcommerce.com/graphql"


@lru_cache
def get_settings() -> Settings:
    """Settings are read from the environment once per process."""
    return Settings()
