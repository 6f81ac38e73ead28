# Run the API with uvicorn: python -m propfinder
# Bind address and verbosity come from SERVER_HOST, SERVER_PORT and LOG_LEVEL.
import os

import uvicorn


def main() -> None:
    host = os.getenv("SERVER_HOST", "127.0.0.1")
    port = int(os.getenv("SERVER_PORT", "8080"))
    log_level = os.getenv("LOG_LEVEL", "info").lower()
    uvicorn.run("propfinder.main:app", host=host, port=port, log_level=log_level)


if __name__ == "__main__":
    main()
