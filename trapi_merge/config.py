from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="TRAPI_MERGE_")

    # result reconciliation
    append_unmatched: bool = False
    result_identity_all_bindings: bool = False

    # canonicalization
    attribute_total_order: bool = False

    # composite scoring
    log_odds_ratio_attribute: str = "biolink:log_odds_ratio"
    total_sample_size_attribute: str = "biolink:total_sample_size"
    nan_fallback_score: float = 0.01
    composite_resource_id: str = "composite"
    composite_scoring_method: str = "weighted_log_odds_ratio"

    log_level: str = "INFO"
    logging_config: str = "logging_setup.yml"


settings = Settings()
