"""
Tests for the logging configuration module
"""

import logging

from genealogy_app.shared.logging_config import get_project_logger, set_project_log_level, setup_logger


def test_setup_logger_basic():
    """Test basic logger setup"""
    logger = setup_logger("test_logger")

    assert logger.name == "test_logger"
    assert logger.level == logging.INFO
    assert len(logger.handlers) >= 1  # At least console handler

def test_setup_logger_with_debug():
    """Test logger setup with debug level"""
    logger = setup_logger("test_debug", level="DEBUG")

    assert logger.level == logging.DEBUG

def test_setup_logger_with_file(temp_dir):
    """Test logger setup with file output"""
    log_file = temp_dir / "test.log"
    logger = setup_logger("test_file", log_file=str(log_file))

    logger.info("Test message")

    assert log_file.exists()
    assert "Test message" in log_file.read_text()

def test_get_project_logger(monkeypatch):
    """Test project logger creation"""
    monkeypatch.delenv('LOG_LEVEL', raising=False)
    logger = get_project_logger("test_module")

    assert logger.name == "test_module"
    assert logger.level == logging.INFO

def test_get_project_logger_from_environment(monkeypatch):
    """Test the LOG_LEVEL environment variable"""
    monkeypatch.setenv('LOG_LEVEL', 'ERROR')
    logger = get_project_logger("test_module_env")

    assert logger.level == logging.ERROR

def test_get_project_logger_verbose():
    """Test project logger with verbose mode"""
    logger_name = "test_module_verbose"
    if logger_name in logging.Logger.manager.loggerDict:
        del logging.Logger.manager.loggerDict[logger_name]

    logger = get_project_logger(logger_name, verbose=True)

    assert logger.level == logging.DEBUG

def test_set_project_log_level():
    """Test that only project loggers are adjusted"""
    project_logger = setup_logger("genealogy_app.test_levels")
    other_logger = setup_logger("unrelated_levels")

    set_project_log_level("ERROR")

    assert project_logger.level == logging.ERROR
    assert other_logger.level == logging.INFO
    set_project_log_level("INFO")

def test_duplicate_logger_handlers():
    """Test that duplicate handlers aren't added"""
    logger1 = setup_logger("duplicate_test")
    initial_handlers = len(logger1.handlers)

    logger2 = setup_logger("duplicate_test")

    assert logger1 is logger2
    assert len(logger2.handlers) == initial_handlers
