import os
from dotenv import load_dotenv

# Load the .env file
load_dotenv()

class Settings:
    """
    Application settings and environment variables.
    """
    # LLM provider: "mistral" or "gemini"
    LLM_PROVIDER = os.getenv("LLM_PROVIDER", "mistral").lower()

    MISTRAL_API_KEY = os.getenv("MISTRAL_API_KEY")
    MISTRAL_MODEL = os.getenv("MISTRAL_MODEL", "mistral-small-latest")

    GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
    GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")

    # Activity Store: "db" (SQLAlchemy) or "api" (SportSee backend)
    DATA_SOURCE = os.getenv("DATA_SOURCE", "db").lower()
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./sportsee.db")
    SPORTSEE_API_URL = os.getenv("SPORTSEE_API_URL", "http://localhost:8000")

    LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "20"))
    MIN_REQUEST_INTERVAL_SECONDS = float(os.getenv("MIN_REQUEST_INTERVAL_SECONDS", "2"))

    @classmethod
    def llm_api_key(cls):
        """API key of the selected provider (None when missing)."""
        if cls.LLM_PROVIDER == "gemini":
            return cls.GEMINI_API_KEY
        return cls.MISTRAL_API_KEY

    @classmethod
    def validate(cls):
        """
        Check that the critical variables are set.
        """
        missing = []
        if cls.LLM_PROVIDER not in ("mistral", "gemini"):
            missing.append("LLM_PROVIDER (mistral|gemini)")
        elif not cls.llm_api_key():
            missing.append("GEMINI_API_KEY" if cls.LLM_PROVIDER == "gemini" else "MISTRAL_API_KEY")
        if cls.DATA_SOURCE not in ("db", "api"):
            missing.append("DATA_SOURCE (db|api)")

        if missing:
            raise ValueError(f"Missing or invalid environment variables: {', '.join(missing)}")

# Validate settings (runs on import). Fallback replies need no LLM, so only warn.
try:
    Settings.validate()
except ValueError as e:
    print(f"WARNING: {e}")
