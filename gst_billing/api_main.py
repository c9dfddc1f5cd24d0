from __future__ import annotations

import uvicorn

from gst_billing.api import create_billing_app
from gst_billing.config import Settings, load_dotenv
from gst_billing.logger import configure_logging

load_dotenv()
settings = Settings.from_env()
app = create_billing_app(settings)


def main() -> None:
    configure_logging(settings.log_level)
    uvicorn.run("gst_billing.api_main:app", host=settings.api_host, port=settings.api_port, reload=False)


if __name__ == "__main__":
    main()
