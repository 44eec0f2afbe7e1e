import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


@dataclass
class DriverConfig:
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    demo_name: str = os.getenv("DEMO_USER_NAME", "Jane Doe")
    demo_email: str = os.getenv("DEMO_USER_EMAIL", "jane@example.com")
    demo_price_id: str = os.getenv("DEMO_PRICE_ID", "")


driver_config = DriverConfig()
