"""
Environment-isolated user JWT service for token generation and validation
Prevents cross-environment token reuse through environment-specific signing and validation
"""

import jwt
import time
import uuid
import logging
from typing import Dict, Any, Optional

from config.settings import JWTEnvironmentConfig, ENV

logger = logging.getLogger(__name__)

class UserJWTService:
    """Environment-isolated service for generating and validating user JWTs"""

    def __init__(self):
        self.jwt_config = JWTEnvironmentConfig.get_config()
        self.secret_key = self.jwt_config["secret"]
        self.algorithm = self.jwt_config["allowed_algorithms"][0]  # Use first allowed algorithm
        self.issuer = self.jwt_config["issuer"]
        self.audience = self.jwt_config["audience"]

    def generate_user_jwt(self, user_id: str, expires_in: Optional[int] = None) -> str:
        """
        Generate a token for a user.

        Sessions are normally issued by the account system; this exists for
        trusted internal callers and test tooling.

        Args:
            user_id: UUID of the user
            expires_in: Lifetime in seconds (default: environment max token age)

        Returns:
            JWT token string

        Raises:
            ValueError: If user_id is not a UUID
        """
        user_id = str(uuid.UUID(str(user_id)))

        current_time = int(time.time())
        expiry_time = current_time + (expires_in if expires_in is not None else self.jwt_config["max_token_age"])

        payload = {
            "iss": self.issuer,      # Environment-specific issuer
            "sub": user_id,          # Caller identity
            "aud": self.audience,    # Environment-specific audience
            "environment": ENV,      # Explicit environment claim for validation
            "iat": current_time,
            "exp": expiry_time
        }

        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

        logger.info(f"Generated access token for user: {user_id}")
        return token

    def validate_and_decode_jwt(self, token: str) -> Dict[str, Any]:
        """
        Validate JWT with comprehensive security checks against tampering

        Args:
            token: JWT token string

        Returns:
            Decoded JWT payload, with sub normalised to a canonical UUID string

        Raises:
            jwt.InvalidTokenError: If token is invalid, tampered, or from wrong environment
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=self.jwt_config["allowed_algorithms"],  # Strict algorithm allowlist
                audience=self.audience,
                issuer=self.issuer,
                options={
                    "require": ["exp", "iat", "sub", "aud", "iss"],
                    "verify_signature": True
                }
            )

            # Validate environment claim matches current environment
            token_env = payload.get('environment')
            if not token_env:
                raise jwt.InvalidTokenError("Missing environment claim")
            if token_env != ENV:
                raise jwt.InvalidTokenError(f"Environment mismatch: token='{token_env}', server='{ENV}'")

            try:
                payload['sub'] = str(uuid.UUID(str(payload['sub'])))
            except ValueError:
                raise jwt.InvalidTokenError("Subject is not a valid user ID")

            logger.debug(f"Successfully validated JWT for user: {payload['sub']} in {ENV}")
            return payload

        except jwt.ExpiredSignatureError:
            logger.warning("JWT token has expired")
            raise jwt.InvalidTokenError("Token has expired")
        except jwt.InvalidAudienceError:
            logger.warning(f"JWT audience validation failed - expected: {self.audience}")
            raise jwt.InvalidTokenError("Invalid audience")
        except jwt.InvalidIssuerError:
            logger.warning(f"JWT issuer validation failed - expected: {self.issuer}")
            raise jwt.InvalidTokenError("Invalid issuer")
        except jwt.InvalidTokenError as e:
            logger.warning(f"JWT validation failed: {str(e)}")
            raise


# Global service instance
user_jwt_service = UserJWTService()


# Convenience functions
def generate_user_jwt(user_id: str, expires_in: Optional[int] = None) -> str:
    """Generate an access token for a user"""
    return user_jwt_service.generate_user_jwt(user_id, expires_in)

def validate_user_jwt(token: str) -> Dict[str, Any]:
    """Validate and decode a user JWT"""
    return user_jwt_service.validate_and_decode_jwt(token)
