"""
Configuration settings for the Panels Backend
"""

import os
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Environment configuration
ENV = os.getenv("ENV", "PROD")  # PROD or QA
DATABASE_URL = os.getenv("DATABASE_URL")
PORT = int(os.getenv("PORT", 8080))

# GET /api/panels was public in the first release; flip this to lock it down
PANELS_LIST_REQUIRES_AUTH = os.getenv("PANELS_LIST_REQUIRES_AUTH", "false").lower() in ("1", "true", "yes")

# Environment-specific JWT configuration for secure token isolation
class JWTEnvironmentConfig:
    """Environment-isolated JWT configuration to prevent cross-environment token reuse"""

    QA_CONFIG = {
        "secret": os.getenv("QA_JWT_SECRET", "qa-default-secret-for-development"),
        "issuer": "panels-qa-auth",
        "audience": "panels-qa-api",
        "allowed_algorithms": ["HS256"],
        "max_token_age": 3600  # 1 hour for testing workflows
    }

    PROD_CONFIG = {
        "secret": os.getenv("PROD_JWT_SECRET", "prod-default-secret-change-in-production"),
        "issuer": "panels-prod-auth",
        "audience": "panels-prod-api",
        "allowed_algorithms": ["HS256"],
        "max_token_age": 86400  # user sessions last a day
    }

    @classmethod
    def get_config(cls):
        """Get JWT configuration for current environment"""
        return cls.QA_CONFIG if ENV == "QA" else cls.PROD_CONFIG

logger.info(f"Environment: {ENV}")
jwt_config = JWTEnvironmentConfig.get_config()
logger.info(f"JWT Config - Issuer: {jwt_config['issuer']}, Audience: {jwt_config['audience']}")

# Validate required environment variables
if not DATABASE_URL:
    raise ValueError("DATABASE_URL environment variable is required")

# CORS settings
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]
