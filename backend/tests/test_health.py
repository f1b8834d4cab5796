from fastapi import status

from contacthub import main
from contacthub.core.config import settings


def test_health_endpoints(client) -> None:
    live = client.get("/health/live")
    ready = client.get("/health/ready")

    assert live.status_code == status.HTTP_200_OK
    assert live.json() == {"status": "ok"}
    assert ready.status_code == status.HTTP_200_OK
    assert ready.json() == {"status": "ready"}


def test_run_serves_app_with_configured_address(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(main.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))

    main.run()

    assert calls == [
        ("contacthub.main:app", {"host": settings.host, "port": settings.port, "reload": settings.debug}),
    ]
