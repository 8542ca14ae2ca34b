from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    PROJECT_NAME: str = "abayes"
    API_V1_PREFIX: str = "/api/v1"

    # Monte Carlo
    DEFAULT_SIMULATION_COUNT: int = 100_000
    MIN_RECOMMENDED_SIMULATIONS: int = 1_000
    MAX_SIMULATION_COUNT: int = 10_000_000
    DIFF_QUANTILES: list[float] = [0.025, 0.5, 0.975]
    CREDIBLE_MASS: float = 0.95

    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "env_prefix": "ABAYES_"}


settings = Settings()
