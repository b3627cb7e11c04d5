"""Tests for structured JSON logging."""

import json
import logging

import pytest

from accountkit.core.address import Address
from accountkit.core.deployment import deploy_account_factory
from accountkit.core.logging_config import (
    CustomJsonFormatter,
    get_logger,
    setup_contract_logging,
    setup_host_logging,
    setup_logging,
)


@pytest.fixture
def logger_name(request):
    name = f"accountkit.test.{request.node.name}"
    yield name
    logger = logging.getLogger(name)
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []


class TestCustomJsonFormatter:

    def test_adds_context_fields(self):
        formatter = CustomJsonFormatter(environment="testnet", service_name="accountkit")
        record = logging.LogRecord(
            name="accountkit.core.contracts.account_factory",
            level=logging.INFO,
            pathname=__file__,
            lineno=42,
            msg="Account created at %s",
            args=("CABC",),
            exc_info=None,
            func="create",
        )
        record.event = "factory.account_created"

        data = json.loads(formatter.format(record))

        assert data["message"] == "Account created at CABC"
        assert data["level"] == "info"
        assert data["environment"] == "testnet"
        assert data["service"] == "accountkit"
        assert data["event"] == "factory.account_created"
        assert data["source"]["function"] == "create"
        assert data["source"]["line"] == 42
        assert data["timestamp"].endswith("Z")


class TestSetupLogging:

    def test_console_output_is_json(self, logger_name, capsys):
        logger = setup_logging(name=logger_name, level="INFO", environment="standalone", enable_file=False)

        logger.info("hello", extra={"event": "test.hello", "address": "CAAA"})

        line = capsys.readouterr().out.strip().splitlines()[-1]
        data = json.loads(line)
        assert data["message"] == "hello"
        assert data["event"] == "test.hello"
        assert data["address"] == "CAAA"
        assert data["environment"] == "standalone"

    def test_level_filters_records(self, logger_name, capsys):
        logger = setup_logging(name=logger_name, level="WARNING", enable_file=False)

        logger.info("dropped")
        logger.warning("kept")

        out = capsys.readouterr().out
        assert "dropped" not in out
        assert "kept" in out

    def test_file_handler(self, logger_name, tmp_path):
        log_file = tmp_path / "logs" / "accountkit.json"
        logger = setup_logging(name=logger_name, log_file=str(log_file), level="INFO", enable_console=False)

        logger.info("to file", extra={"event": "test.file"})
        for handler in logger.handlers:
            handler.flush()

        data = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert data["event"] == "test.file"

    def test_setup_replaces_handlers(self, logger_name):
        setup_logging(name=logger_name, enable_file=False)
        logger = setup_logging(name=logger_name, enable_file=False)

        assert len(logger.handlers) == 1

    def test_get_logger_configures_once(self, logger_name):
        first = get_logger(logger_name)
        handlers = list(first.handlers)

        second = get_logger(logger_name)

        assert second is first
        assert second.handlers == handlers

    def test_keys_and_addresses_are_readable(self, logger_name, capsys):
        logger = setup_logging(name=logger_name, level="INFO", enable_file=False)
        address = Address.contract(b"\x00" * 32)

        logger.info("created", extra={"owner": b"\xab" * 4, "address": address})

        data = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert data["owner"] == "abababab"
        assert data["address"] == str(address)


class TestPresets:

    @pytest.fixture(autouse=True)
    def reset_preset_loggers(self):
        yield
        for name in ("accountkit.core.contracts", "accountkit.core.vm"):
            logger = logging.getLogger(name)
            for handler in logger.handlers:
                handler.close()
            logger.handlers = []
            logger.setLevel(logging.NOTSET)

    def test_contract_logging_receives_factory_events(self, host, admin_keys, capsys):
        admin_private, _ = admin_keys
        setup_contract_logging(environment="testnet")

        deploy_account_factory(host, admin_private)

        events = [json.loads(line).get("event") for line in capsys.readouterr().out.strip().splitlines()]
        assert "factory.initialized" in events

    def test_host_logging(self):
        logger = setup_host_logging(environment="standalone")

        assert logger.name == "accountkit.core.vm"
        assert isinstance(logger.handlers[0].formatter, CustomJsonFormatter)
        assert logger.handlers[0].formatter.environment == "standalone"
