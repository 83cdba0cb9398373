import logging

from config import get_settings

SERVICE_APPS = {
    "costs": "costs_api:app",
    "users": "users_api:app",
    "logs": "logs_api:app",
    "admin": "admin_api:app",
}


def app_path_for(service_name: str) -> str:
    try:
        return SERVICE_APPS[service_name]
    except KeyError as exc:
        known = ", ".join(sorted(SERVICE_APPS))
        raise ValueError(
            f"Unknown service {service_name!r}; expected one of: {known}"
        ) from exc


def main():
    import uvicorn

    from database import run_migrations

    logging.basicConfig(level=logging.INFO)
    settings = get_settings()
    app_path = app_path_for(settings.service_name)
    run_migrations()
    logging.info(f"Starting {settings.service_name} service ({app_path})")
    uvicorn.run(app_path, host=settings.host, port=settings.port, reload=False)


if __name__ == "__main__":
    main()
