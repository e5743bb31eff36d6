"""Network configuration constants for the quiz application."""

import os

DEFAULT_HOST: str = os.getenv("QUIZ_DELIVERY_HOST", "0.0.0.0")
DEFAULT_PORT: int = int(os.getenv("QUIZ_DELIVERY_PORT", "8000"))
API_BASE_URL: str = os.getenv("QUIZ_DELIVERY_API_URL", f"http://127.0.0.1:{DEFAULT_PORT}")
REQUEST_TIMEOUT_SECONDS: float = float(os.getenv("QUIZ_DELIVERY_TIMEOUT", "10"))
STUDENT_ID_HEADER: str = "X-Student-Id"
