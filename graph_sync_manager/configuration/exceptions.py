"""Contains exceptions raised when reconciling application configuration."""

from graph_sync_manager.exceptions import ConfigurationValidationError


class GitHubAuthenticationConfigurationUndefinedError(ConfigurationValidationError):
    """Raised when the GitHub authentication configuration is undefined or ambiguous."""

    pass


class RequiredConfigurationElementError(ConfigurationValidationError):
    """Raised when one or more required configuration elements are missing."""

    def __init__(self, missing_settings: list[dict[str, str]]) -> None:
        """Initializes the exception with every missing element.

        Each setting is a mapping with ``name``, ``cli_name`` and ``env_name`` keys.
        """
        super().__init__(
            "Missing required configuration element(s): "
            + ", ".join(
                f"{setting['name']} (command line option {setting['cli_name']}, environment variable {setting['env_name']})"
                for setting in missing_settings
            ),
            invalid_values=[setting["name"] for setting in missing_settings],
        )
        self.missing_settings = missing_settings
        self.env_names = [setting["env_name"] for setting in missing_settings]
