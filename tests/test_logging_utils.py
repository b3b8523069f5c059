from __future__ import annotations

import logging
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

import aws_simple_sso
from aws_simple_sso import logging_utils
from aws_simple_sso.models import Account, Credentials, OrgUrl, Role
from conftest import FakeClients, FakeOIDC, FakePortal


def _settings(log_file: str | None, level: str = "DEBUG") -> SimpleNamespace:
    return SimpleNamespace(
        logging=SimpleNamespace(level=level, file=log_file),
    )


def _installed_handlers() -> list[logging.Handler]:
    return [
        handler
        for handler in logging.getLogger("aws_simple_sso").handlers
        if not isinstance(handler, logging.NullHandler)
    ]


@pytest.fixture(autouse=True)
def _reset_package_logger():
    package_logger = logging.getLogger("aws_simple_sso")
    level = package_logger.level
    yield
    for handler in list(logging_utils._installed):
        package_logger.removeHandler(handler)
        handler.close()
    logging_utils._installed.clear()
    package_logger.setLevel(level)


def test_package_logger_has_null_handler_by_default() -> None:
    handlers = logging.getLogger(aws_simple_sso.__name__).handlers
    assert any(isinstance(handler, logging.NullHandler) for handler in handlers)


@patch("aws_simple_sso.logging_utils.load_settings")
def test_configure_logging_stream_only(mock_load_settings: MagicMock) -> None:
    mock_load_settings.return_value = _settings(None)
    root_handlers = list(logging.getLogger().handlers)

    package_logger = logging_utils.configure_logging()

    assert package_logger.name == "aws_simple_sso"
    assert package_logger.level == logging.DEBUG
    assert len(_installed_handlers()) == 1
    assert logging.getLogger().handlers == root_handlers


@patch("aws_simple_sso.logging_utils.load_settings")
def test_configure_logging_with_file(mock_load_settings: MagicMock, tmp_path) -> None:
    log_file = tmp_path / "logs" / "sso.log"
    mock_load_settings.return_value = _settings(str(log_file))

    logging_utils.configure_logging()

    assert len(_installed_handlers()) == 2
    assert log_file.parent.is_dir()


@patch("aws_simple_sso.logging_utils.load_settings")
def test_configure_logging_replaces_previous_handlers(mock_load_settings: MagicMock) -> None:
    mock_load_settings.return_value = _settings(None)

    logging_utils.configure_logging()
    logging_utils.configure_logging(level="warning")

    assert len(_installed_handlers()) == 1
    assert logging.getLogger("aws_simple_sso").level == logging.WARNING


@patch("aws_simple_sso.logging_utils.load_settings")
@patch("aws_simple_sso.logging_utils.logging.FileHandler", side_effect=OSError("permission denied"))
@patch("aws_simple_sso.logging_utils._logger")
def test_configure_logging_file_handler_error(
    mock_logger: MagicMock,
    _mock_file_handler: MagicMock,
    mock_load_settings: MagicMock,
    tmp_path,
) -> None:
    mock_load_settings.return_value = _settings(str(tmp_path / "app.log"))

    logging_utils.configure_logging()

    mock_logger.warning.assert_called_once()
    assert len(_installed_handlers()) == 1


@pytest.mark.asyncio
async def test_sign_in_is_written_to_log_file(
    monkeypatch, cache, make_authenticator, tmp_path
) -> None:
    log_file = tmp_path / "sso.log"
    monkeypatch.setattr(logging_utils, "load_settings", lambda: _settings(None, level="INFO"))
    logging_utils.configure_logging(log_file=str(log_file))

    org = OrgUrl(name="Acme", start_url="https://acme.awsapps.com/start", region="us-east-1")
    cache.save_org_urls([org])
    oidc = FakeOIDC([{"accessToken": "access", "expiresIn": 3600}])
    portal = FakePortal(
        accounts=[Account(account_id="111111111111", name="prod")],
        roles=[Role(account_id="111111111111", name="Admin")],
        credentials=Credentials(
            access_key_id="ASIA",
            secret_access_key="s",
            session_token="t",
            expire_time=datetime(2030, 1, 1, tzinfo=timezone.utc),
        ),
    )
    auth = make_authenticator(clients=FakeClients(oidc=oidc, portal=portal))

    await auth.authenticate("Acme")

    for handler in _installed_handlers():
        handler.flush()
    contents = log_file.read_text()
    assert "| INFO | aws_simple_sso.flow | Signed in to Acme" in contents
