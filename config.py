"""Environment-aware configuration for the complaint desk."""
import os


class BaseConfig:
    def __init__(self) -> None:
        # Defaults for local dev: in-memory store and a non-empty secret. Override via env for production.
        self.SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-me")
        self.COMPLAINT_STORE = os.getenv("COMPLAINT_STORE", "memory").lower()
        self.SQLALCHEMY_DATABASE_URI = os.getenv(
            "DATABASE_URL",
            f"sqlite:///{os.path.join(os.getcwd(), 'instance', 'complaints.db')}",
        )
        self.SQLALCHEMY_TRACK_MODIFICATIONS = False
        self.SESSION_COOKIE_HTTPONLY = True
        self.SESSION_COOKIE_SAMESITE = "Lax"
        self.PREFERRED_URL_SCHEME = os.getenv("PREFERRED_URL_SCHEME", "http")
        self.WTF_CSRF_TIME_LIMIT = 3600
        self.WTF_CSRF_ENABLED = True
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.LOG_DIR = os.getenv("LOG_DIR", os.path.join(os.getcwd(), "logs"))
        # Two signatures per submission; keep the request ceiling well above them.
        self.MAX_SIGNATURE_BYTES = int(os.getenv("MAX_SIGNATURE_BYTES", 2 * 1024 * 1024))
        self.MAX_CONTENT_LENGTH = int(os.getenv("MAX_REQUEST_BYTES", 8 * 1024 * 1024))
        # CSS size of the signature pad; the page uses a 2:1 box.
        self.SIGNATURE_CSS_WIDTH = int(os.getenv("SIGNATURE_CSS_WIDTH", 400))
        self.SIGNATURE_CSS_HEIGHT = int(os.getenv("SIGNATURE_CSS_HEIGHT", 200))
        self.SIGNATURE_PIXEL_RATIO = float(os.getenv("SIGNATURE_PIXEL_RATIO", 1))
        self.PRODUCT_TYPES = tuple(
            p.strip()
            for p in os.getenv(
                "PRODUCT_TYPES", "CPU,Printer,UPS,Laptop,Keyboard,Mouse,RAM,Monitor,Other"
            ).split(",")
            if p.strip()
        )


class DevelopmentConfig(BaseConfig):
    def __init__(self) -> None:
        super().__init__()
        self.DEBUG = True
        self.ENV = "development"
        self.SESSION_COOKIE_SECURE = False


class ProductionConfig(BaseConfig):
    def __init__(self) -> None:
        super().__init__()
        self.DEBUG = False
        self.ENV = "production"
        self.SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "false").lower() == "true"


class TestingConfig(BaseConfig):
    def __init__(self) -> None:
        super().__init__()
        self.TESTING = True
        self.DEBUG = False
        self.ENV = "testing"
        self.WTF_CSRF_ENABLED = False
        self.COMPLAINT_STORE = os.getenv("COMPLAINT_STORE", "memory").lower()
        self.SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
        self.SESSION_COOKIE_SECURE = False
