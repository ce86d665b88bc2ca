"""
config/settings.py
Central configuration: reads from environment variables and .env file.
"""
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings:

    def __init__(self):
        self._load()

    def _load(self):
        import os
        env_file = BASE_DIR / ".env"
        if env_file.exists():
            for line in env_file.read_text().splitlines():
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, _, val = line.partition("=")
                    os.environ.setdefault(key.strip(), val.strip())

        # Data directory is the site root: data/ and content/ exactly as they are served
        self.site_root = Path(os.environ.get("VISA_DATA_DIR", str(BASE_DIR)))
        self.routes_file  = "data/routes.json"
        self.fees_file    = "data/fees.json"
        self.rules_file   = "data/rules.json"
        self.site_file    = "data/site.json"
        self.content_dir  = "content/routes"

        self.api_host    = os.environ.get("API_HOST", "0.0.0.0")
        self.api_port    = int(os.environ.get("API_PORT", "8000"))
        self.api_title   = "UK Visa Cost Estimator API"
        self.api_version = "1.0.0"

        self.metrics_port = int(os.environ.get("METRICS_PORT", "9090"))
        self.log_level    = os.environ.get("LOG_LEVEL", "INFO")

        # Business constants not carried in the data tables
        self.life_in_uk_test_fee = 50.0
        self.currency_symbol     = "£"

        # Form bounds
        self.min_applicants          = 1
        self.max_applicants          = 10
        self.min_dependants          = 0
        self.max_dependants          = 10
        self.default_max_duration    = 60
        self.default_custom_duration = 12

        self.required_route_fields = [
            "route_id", "name", "category", "indexable",
            "apply_from_options", "duration_policy", "ihs_policy",
        ]


settings = Settings()
