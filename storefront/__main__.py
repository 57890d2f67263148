import os

import uvicorn

from . import settings


def main():
    uvicorn.run(
        "storefront.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        workers=int(os.getenv("UVICORN_WORKERS", str(max(2, (os.cpu_count() or 1))))),
        loop="uvloop",  # requires uvicorn[standard]
        http="h11",
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
