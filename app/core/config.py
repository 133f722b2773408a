import os
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    env: str = os.getenv("ENV", "unit-test")
    log_level: str = "INFO"
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db_name: str = "coursework"
    jwt_algorithm: str = "RS256"
    jwt_public_key: str = ""

    class Config:
        env_file = None

settings = Settings()
