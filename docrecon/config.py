"""
Configuration for the trade document reconciliation engine.
"""

# Load environment variables FIRST
from dotenv import load_dotenv
load_dotenv()

import os
from typing import Optional


class Config:
    """Base configuration."""
    
    # External inference service
    AI_SERVICE_URL: str = os.getenv("AI_SERVICE_URL", "http://localhost:5000")
    AI_SERVICE_TIMEOUT: float = float(os.getenv("AI_SERVICE_TIMEOUT", "120"))
    LLM_MOCK_MODE: bool = os.getenv("LLM_MOCK_MODE", "false").lower() == "true"  # Canned inference responses
    DEFAULT_PROMPT: str = os.getenv("DEFAULT_PROMPT", "")
    
    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_FILE: Optional[str] = os.getenv("LOG_FILE", "docrecon.log")
    
    # Data Paths
    DOCUMENT_STORE_PATH: str = os.getenv(
        "DOCUMENT_STORE_PATH",
        os.path.join(os.path.dirname(__file__), "data", "documents.json"),
    )
    RULE_STORE_PATH: str = os.getenv(
        "RULE_STORE_PATH",
        os.path.join(os.path.dirname(__file__), "data", "rules.json"),
    )
    TRAINING_DATA_DIR: str = os.getenv(
        "TRAINING_DATA_DIR",
        os.path.join(os.path.expanduser("~"), "docrecon_training", "training_data"),
    )
    CSV_EXPORT_DIR: str = os.getenv("CSV_EXPORT_DIR", "exports")
    
    # API Configuration (if using FastAPI)
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))
    API_DEBUG: bool = os.getenv("API_DEBUG", "false").lower() == "true"
    
    # Workflow Configuration
    GRAPH_RECURSION_LIMIT: int = 25
    
    @classmethod
    def validate(cls) -> None:
        """Validate configuration."""
        if not cls.AI_SERVICE_URL.startswith(("http://", "https://")):
            raise ValueError(f"Invalid AI_SERVICE_URL: {cls.AI_SERVICE_URL}")
        
        if cls.AI_SERVICE_TIMEOUT <= 0:
            raise ValueError("AI_SERVICE_TIMEOUT must be positive")


class DevelopmentConfig(Config):
    """Development configuration."""
    LOG_LEVEL = "DEBUG"
    API_DEBUG = True


class ProductionConfig(Config):
    """Production configuration."""
    LOG_LEVEL = "INFO"
    API_DEBUG = False


class TestConfig(Config):
    """Test configuration."""
    LOG_LEVEL = "DEBUG"
    LOG_FILE = None
    LLM_MOCK_MODE = True


def get_config(env: str = None) -> Config:
    """Get configuration based on environment."""
    if env is None:
        env = os.getenv("ENV", "development").lower()
    
    if env == "production":
        config = ProductionConfig()
    elif env == "test":
        config = TestConfig()
    else:
        config = DevelopmentConfig()
    
    # Validate configuration on creation
    config.validate()
    return config
