import importlib
import warnings

from pydantic.warnings import PydanticDeprecatedSince20

from app.features.waitlist.schemas import waitlist as waitlist_schemas
from app.platform import config as config_module


def test_settings_and_schemas_use_model_config():
    with warnings.catch_warnings():
        warnings.simplefilter("error", PydanticDeprecatedSince20)
        config = importlib.reload(config_module)
        schemas = importlib.reload(waitlist_schemas)

    assert config.Settings.model_config["extra"] == "ignore"
    assert config.Settings.model_config["case_sensitive"] is False
    assert config.Settings.model_config["env_file"].endswith(".env")
    for model in (schemas.WaitlistOut, schemas.WaitlistCheckOut, schemas.WaitlistAdminOut):
        assert model.model_config["from_attributes"] is True


def test_settings_ignore_unknown_keys(make_settings):
    settings = make_settings(NOT_A_SETTING="x", MAIL_MAILER="relay")

    assert settings.MAIL_MAILER == "relay"
    assert not hasattr(settings, "NOT_A_SETTING")
