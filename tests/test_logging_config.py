import logging

from wager_bridge import logging_config


def test_level_comes_from_settings(monkeypatch):
    monkeypatch.setattr(logging_config.settings, "log_level", "debug")
    assert logging_config.get_logger("wager_bridge.test.debug").level == logging.DEBUG


def test_unknown_level_name_falls_back_to_info(monkeypatch):
    monkeypatch.setattr(logging_config.settings, "log_level", "verbose")
    assert logging_config.get_logger("wager_bridge.test.verbose").level == logging.INFO
    assert logging_config.get_logger("wager_bridge.test.explicit", "chatty").level == logging.INFO
    assert logging_config.get_logger("wager_bridge.test.numeric", logging.WARNING).level == logging.WARNING
