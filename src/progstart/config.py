"""src/progstart/config.py"""
import yaml
import voluptuous as vlp
from pathlib import Path

from progstart.context import FEATURES, resolve_features, UnknownFeatureError

class ConfigErrors(Exception):
    """Raised when a configuration fails validation. `errors` is a list of
    (key, message) tuples, one per problem found.
    """
    def __init__(self, errors):
        self.errors = errors
        super().__init__("; ".join(f"{key}: {msg}" for key, msg in errors))

class Schema():
    """Voluptuous schema and validator functions for a progstart config file."""

    class ErrMsg:
        NOT_A_MAPPING = "Config file must contain a mapping of settings"
        FEATURE_UNKNOWN = "Not a known feature name"
        LOG_LEVEL_INVALID = "Not a valid log level"

    LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

    # config key -> LifecycleContext attribute
    OPTION_KEYS = {"verbose": "verbose", "execute": "execute", "clobber": "clobber",
                   "debug": "debug", "keeptmp": "keep_tmp", "tmpdir": "tmp_dir"}

    @staticmethod
    def schema() -> vlp.Schema:
        """Voluptuous Schema to validate a freshly parsed config mapping. The
        'features' list is validated against the feature table and replaced by
        the resolved frozenset of enabled features.
        """
        return vlp.Schema(
            { vlp.Optional("features"): vlp.All([str], Schema.are_valid_features),
              vlp.Optional("verbose"): bool,
              vlp.Optional("execute"): bool,
              vlp.Optional("clobber"): bool,
              vlp.Optional("debug"): bool,
              vlp.Optional("keeptmp"): bool,
              vlp.Optional("tmpdir"): vlp.All(vlp.Coerce(str), vlp.Length(min=1)),
              vlp.Optional("log_level"): vlp.All(vlp.Upper, vlp.In(Schema.LOG_LEVELS,
                                                                   msg=Schema.ErrMsg.LOG_LEVEL_INVALID))
            },
            extra=vlp.PREVENT_EXTRA)

    @staticmethod
    def are_valid_features(toggles:list[str]) -> frozenset:
        """Validator to ensure every toggle names a feature (optionally prefixed
        with 'no'), returning the resolved set of enabled features.
        """
        try:
            return resolve_features(toggles)
        except UnknownFeatureError as exc:
            raise vlp.Invalid(Schema.ErrMsg.FEATURE_UNKNOWN + f": {exc}; known features are {', '.join(FEATURES)}")

def parse_yaml_string(string) -> dict:
    """Returns the validated config mapping for the YAML in `string`. An empty
    document is an empty config.

    Throws ConfigErrors if the YAML is malformed or does not validate."""
    try:
        data = yaml.safe_load(string)
    except yaml.YAMLError as exc:
        raise ConfigErrors([("yaml", str(exc))]) from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigErrors([("config", Schema.ErrMsg.NOT_A_MAPPING)])
    try:
        return Schema.schema()(data)
    except vlp.MultipleInvalid as exc:
        raise ConfigErrors([(_error_key(err), err.msg) for err in exc.errors]) from exc

def _error_key(err:vlp.Invalid) -> str:
    return ".".join(str(p) for p in err.path) if err.path else "config"

def parse_config(config_path:(Path | str)) -> dict:
    """Returns the validated config mapping from the YAML config file at
    `config_path`.

    Throws `OSError` if unable to open `config_path`"""
    with open(config_path, "r", encoding="utf-8") as f:
        return parse_yaml_string(f)

def apply_config(context, config:dict) -> None:
    """Copy the option settings in `config` onto `context`."""
    for key, attr in Schema.OPTION_KEYS.items():
        if key in config:
            setattr(context, attr, config[key])
