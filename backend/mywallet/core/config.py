import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    store_backend: str
    database_url: str
    db_pool_min: int
    db_pool_max: int
    db_pool_timeout: float
    bcrypt_rounds: int
    password_min_len: int
    cors_origins: tuple[str, ...]
    log_level: str
    host: str
    port: int


def load_settings() -> Settings:
    store_backend = (os.getenv("STORE_BACKEND") or "postgres").strip().lower()
    if store_backend not in ("postgres", "memory"):
        raise RuntimeError(f"Unknown STORE_BACKEND: {store_backend}")
    database_url = os.getenv("DATABASE_URL", "")
    if store_backend == "postgres" and not database_url:
        raise RuntimeError("DATABASE_URL is required")

    db_pool_min = max(1, int(os.getenv("DB_POOL_MIN", "1")))
    db_pool_max = max(db_pool_min, int(os.getenv("DB_POOL_MAX", "10")))

    cors_origins = tuple(
        origin.strip() for origin in (os.getenv("CORS_ORIGINS") or "*").split(",") if origin.strip()
    )

    return Settings(
        store_backend=store_backend,
        database_url=database_url,
        db_pool_min=db_pool_min,
        db_pool_max=db_pool_max,
        db_pool_timeout=float(os.getenv("DB_POOL_TIMEOUT", "30")),
        bcrypt_rounds=max(4, min(31, int(os.getenv("BCRYPT_ROUNDS", "12")))),
        password_min_len=max(1, int(os.getenv("PASSWORD_MIN_LEN", "3"))),
        cors_origins=cors_origins or ("*",),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper(),
        host=(os.getenv("HOST") or "0.0.0.0").strip(),
        port=int(os.getenv("PORT", "5000")),
    )


settings = load_settings()
