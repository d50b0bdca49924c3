"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any

from ..logging.config import LOG_LEVELS

SUPPORTED_NOTIFIERS = ("telegram", "stdout")


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_auth_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate authentication parameters."""
        errors = []

        secret = params.get("secret")
        if not isinstance(secret, str) or not secret:
            errors.append(ValidationError(
                field="auth.secret",
                message="Must be a non-empty string",
                value="<redacted>" if secret else secret
            ))

        if "signature_length" in params:
            value = params["signature_length"]
            if not isinstance(value, int) or isinstance(value, bool) or not 8 <= value <= 64:
                errors.append(ValidationError(
                    field="auth.signature_length",
                    message="Must be an integer between 8 and 64",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_leader_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate leader recognition parameters."""
        errors = []

        for key in ("username", "marker_phrase"):
            value = params.get(key)
            if not isinstance(value, str) or not value.strip():
                errors.append(ValidationError(
                    field=f"leader.{key}",
                    message="Must be a non-empty string",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_referral_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate referral parameters."""
        errors = []

        codes = params.get("accepted_codes")
        if (not isinstance(codes, (list, tuple)) or not codes
                or not all(isinstance(code, str) and code for code in codes)):
            errors.append(ValidationError(
                field="referral.accepted_codes",
                message="Must be a non-empty list of non-empty strings",
                value=codes
            ))

        return errors

    @staticmethod
    def validate_risk_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate risk multiplier bounds."""
        errors = []

        minimum = params.get("minimum")
        maximum = params.get("maximum")
        default = params.get("default")

        for key, value in (("minimum", minimum), ("maximum", maximum), ("default", default)):
            if not _is_number(value) or value <= 0:
                errors.append(ValidationError(
                    field=f"risk.{key}",
                    message="Must be a positive number",
                    value=value
                ))

        if errors:
            return errors

        if minimum > maximum:
            errors.append(ValidationError(
                field="risk.minimum",
                message="Must not exceed risk.maximum",
                value=minimum
            ))
        elif not minimum <= default <= maximum:
            errors.append(ValidationError(
                field="risk.default",
                message="Must lie within [risk.minimum, risk.maximum]",
                value=default
            ))

        return errors

    @staticmethod
    def validate_inbox_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate inbox limits."""
        errors = []

        for key in ("default_limit", "max_limit"):
            value = params.get(key)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                errors.append(ValidationError(
                    field=f"inbox.{key}",
                    message="Must be a positive integer",
                    value=value
                ))

        if not errors and params["default_limit"] > params["max_limit"]:
            errors.append(ValidationError(
                field="inbox.default_limit",
                message="Must not exceed inbox.max_limit",
                value=params["default_limit"]
            ))

        return errors

    @staticmethod
    def validate_notification_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate notification parameters."""
        errors = []

        method = params.get("method")
        if method not in SUPPORTED_NOTIFIERS:
            errors.append(ValidationError(
                field="notification.method",
                message=f"Must be one of {', '.join(SUPPORTED_NOTIFIERS)}",
                value=method
            ))
        elif method == "telegram" and not params.get("bot_token"):
            errors.append(ValidationError(
                field="notification.bot_token",
                message="Required when notification.method is telegram",
                value=None
            ))

        timeout = params.get("timeout_seconds")
        if not _is_number(timeout) or timeout <= 0:
            errors.append(ValidationError(
                field="notification.timeout_seconds",
                message="Must be a positive number",
                value=timeout
            ))

        retries = params.get("retry_attempts")
        if not isinstance(retries, int) or isinstance(retries, bool) or retries < 0:
            errors.append(ValidationError(
                field="notification.retry_attempts",
                message="Must be a non-negative integer",
                value=retries
            ))

        concurrency = params.get("max_concurrency")
        if not isinstance(concurrency, int) or isinstance(concurrency, bool) or concurrency <= 0:
            errors.append(ValidationError(
                field="notification.max_concurrency",
                message="Must be a positive integer",
                value=concurrency
            ))

        return errors

    @staticmethod
    def validate_store_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate store parameters."""
        errors = []

        if not isinstance(params.get("db_path"), str) or not params.get("db_path"):
            errors.append(ValidationError(
                field="store.db_path",
                message="Must be a non-empty path",
                value=params.get("db_path")
            ))

        timeout = params.get("timeout_seconds")
        if not _is_number(timeout) or timeout <= 0:
            errors.append(ValidationError(
                field="store.timeout_seconds",
                message="Must be a positive number",
                value=timeout
            ))

        return errors

    @staticmethod
    def validate_webhook_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate webhook intake parameters."""
        errors = []

        path = params.get("path")
        if not isinstance(path, str) or not path.startswith("/"):
            errors.append(ValidationError(
                field="webhook.path",
                message="Must be a string starting with /",
                value=path
            ))

        recent = params.get("recent_updates")
        if not isinstance(recent, int) or isinstance(recent, bool) or recent <= 0:
            errors.append(ValidationError(
                field="webhook.recent_updates",
                message="Must be a positive integer",
                value=recent
            ))

        return errors

    @staticmethod
    def validate_logging_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate logging parameters."""
        errors = []

        level = params.get("level")
        if not isinstance(level, str) or level.upper() not in LOG_LEVELS:
            errors.append(ValidationError(
                field="logging.level",
                message=f"Must be one of {', '.join(LOG_LEVELS)}",
                value=level
            ))

        if not isinstance(params.get("format_json"), bool):
            errors.append(ValidationError(
                field="logging.format_json",
                message="Must be a boolean",
                value=params.get("format_json")
            ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []

        errors.extend(ConfigValidator.validate_auth_params(config.get("auth", {})))
        errors.extend(ConfigValidator.validate_leader_params(config.get("leader", {})))
        errors.extend(ConfigValidator.validate_referral_params(config.get("referral", {})))
        errors.extend(ConfigValidator.validate_risk_params(config.get("risk", {})))
        errors.extend(ConfigValidator.validate_inbox_params(config.get("inbox", {})))
        errors.extend(ConfigValidator.validate_notification_params(config.get("notification", {})))
        errors.extend(ConfigValidator.validate_store_params(config.get("store", {})))
        errors.extend(ConfigValidator.validate_webhook_params(config.get("webhook", {})))
        errors.extend(ConfigValidator.validate_logging_params(config.get("logging", {})))

        return errors
