from server.config.settings import load_config


def test_testing_config_defaults(monkeypatch):
    monkeypatch.delenv("LLM_MAX_ATTEMPTS", raising=False)
    config = load_config("testing")
    assert config["TESTING"] is True
    assert config["LLM_MAX_ATTEMPTS"] == 1
    assert config["REPLY_CLASSIFIER"] == "salutation"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("LLM_TEMPERATURE", "0.4")
    monkeypatch.setenv("REPLY_CLASSIFIER", "structural")
    config = load_config("production")
    assert config["LLM_TEMPERATURE"] == 0.4
    assert config["REPLY_CLASSIFIER"] == "structural"


def test_unknown_name_falls_back_to_base():
    assert load_config("staging")["DEBUG"] is False
