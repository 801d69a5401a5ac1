"""Configuration settings for the salon scheduling engine."""

import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Application configuration from environment variables."""

    SALON_NAME: str = os.getenv('SALON_NAME', 'Spaço Delas')

    # Twilio Configuration (WhatsApp notifications)
    TWILIO_ACCOUNT_SID: str = os.getenv('TWILIO_ACCOUNT_SID', '')
    TWILIO_AUTH_TOKEN: str = os.getenv('TWILIO_AUTH_TOKEN', '')
    TWILIO_WHATSAPP_FROM: str = os.getenv('TWILIO_WHATSAPP_FROM', '')
    NOTIFICATIONS_ENABLED: bool = _as_bool(os.getenv('NOTIFICATIONS_ENABLED', 'false'))

    # Inference Service (natural-language scheduling and payment OCR)
    INFERENCE_URL: str = os.getenv('INFERENCE_URL', '')
    INFERENCE_API_KEY: str = os.getenv('INFERENCE_API_KEY', '')
    INFERENCE_TIMEOUT_SECONDS: int = int(os.getenv('INFERENCE_TIMEOUT_SECONDS', '30'))

    # Logging Configuration
    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FILE: str = os.getenv('LOG_FILE', 'logs/salon.log')

    # Business Rules
    PACKAGE_PRICE: float = float(os.getenv('PACKAGE_PRICE', '180'))

    @classmethod
    def validate(cls) -> bool:
        """Validate that the outbound integrations are configured."""
        required_fields = [
            'TWILIO_ACCOUNT_SID',
            'TWILIO_AUTH_TOKEN',
            'TWILIO_WHATSAPP_FROM',
            'INFERENCE_URL',
        ]

        missing = []
        for field in required_fields:
            value = getattr(cls, field, '')
            if not value:
                missing.append(field)

        if missing:
            # Imported here: utils.logger depends on this module.
            from utils.logger import setup_logger
            setup_logger(__name__).error(f"Missing required configuration: {', '.join(missing)}")
            return False

        return True

    @classmethod
    def to_dict(cls) -> dict:
        """Convert configuration to dictionary (excluding sensitive data)."""
        return {
            'SALON_NAME': cls.SALON_NAME,
            'NOTIFICATIONS_ENABLED': cls.NOTIFICATIONS_ENABLED,
            'INFERENCE_URL': cls.INFERENCE_URL,
            'INFERENCE_TIMEOUT_SECONDS': cls.INFERENCE_TIMEOUT_SECONDS,
            'LOG_LEVEL': cls.LOG_LEVEL,
            'PACKAGE_PRICE': cls.PACKAGE_PRICE,
        }


# Global config instance
config = Config()
