from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Authorization Server Configuration
    API_BASE_URL: str = "https://api.example.com/v1"
    INSTALLER_API_KEY: str = "changeme-installer-key-here"
    LICENSE_API_TIMEOUT: float = 30

    # Operator credential (prompted for when empty)
    LICENSE_KEY: str = ""

    # Identity Detection
    IP_DETECTION_TIMEOUT: float = 5
    IP_DETECTION_SERVICES: List[str] = [
        "https://ifconfig.me",
        "https://ipinfo.io/ip",
        "https://api.ipify.org",
    ]
    MACHINE_ID_PATHS: List[str] = [
        "/etc/machine-id",
        "/var/lib/dbus/machine-id",
    ]

    # Actions
    SCRIPTS_DIR: str = "/opt/installer/scripts"
    ACTION_INTERPRETER: str = "bash"  # Empty runs the script directly

    LOG_LEVEL: str = "WARNING"
    APP_VERSION: str = "1.0.0"


settings = Settings()
