import structlog

from api_contract_checker.logging import setup_logging


class TestSetupLogging:
    def test_logs_go_to_stderr(self, capsys):
        setup_logging("WARNING")
        structlog.get_logger("test").warning("unmounted_router", repo="users-service")

        captured = capsys.readouterr()
        assert "unmounted_router" in captured.err
        assert "repo=users-service" in captured.err
        assert captured.out == ""

    def test_level_filters_lower_events(self, capsys):
        setup_logging("error")
        structlog.get_logger("test").warning("classification_gap")

        assert "classification_gap" not in capsys.readouterr().err

    def test_unknown_level_falls_back_to_warning(self, capsys):
        setup_logging("chatty")
        log = structlog.get_logger("test")
        log.info("hidden_event")
        log.warning("shown_event")

        err = capsys.readouterr().err
        assert "hidden_event" not in err
        assert "shown_event" in err
