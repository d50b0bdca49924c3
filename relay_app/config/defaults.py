"""Default configuration parameters for the signal relay."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class LeaderParams:
    """Who may broadcast, and how their alerts are recognized."""
    username: str = "BasedPing_bot"                  # Leader's chat handle, no @
    marker_phrase: str = "New Trade Alert!"          # Required in every alert


@dataclass(frozen=True)
class AuthParams:
    """Signal authentication parameters."""
    secret: str = ""                                 # Shared with the leader's signer
    signature_length: int = 16                       # Hex chars kept from the HMAC


@dataclass(frozen=True)
class ReferralParams:
    """Referral codes accepted by /subscribe."""
    accepted_codes: tuple[str, ...] = ("GODSEYE",)


@dataclass(frozen=True)
class RiskParams:
    """Risk multiplier bounds."""
    minimum: float = 0.1
    maximum: float = 2.0
    default: float = 0.5                             # Applied on (re-)subscribe


@dataclass(frozen=True)
class InboxParams:
    """Signal inbox retrieval parameters."""
    default_limit: int = 10
    max_limit: int = 100


@dataclass(frozen=True)
class StoreParams:
    """SQLite store parameters."""
    db_path: str = "relay.db"
    timeout_seconds: float = 5.0                     # Per store call


@dataclass(frozen=True)
class NotificationParams:
    """Outbound chat notification parameters."""
    method: str = "telegram"                         # telegram, stdout
    bot_token: str = ""
    api_base_url: str = "https://api.telegram.org"
    timeout_seconds: float = 10.0                    # Per attempt
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.5
    max_concurrency: int = 20                        # Parallel fan-out recipients
    message_prefix: str = "Auto-Signal: "


@dataclass(frozen=True)
class WebhookParams:
    """Inbound chat webhook parameters."""
    path: str = "/webhook"
    secret_token: str = ""                           # Empty disables the check
    recent_updates: int = 1000                       # Update ids remembered for redelivery checks


@dataclass(frozen=True)
class ServerParams:
    """HTTP server parameters."""
    host: str = "0.0.0.0"
    port: int = 8000


@dataclass(frozen=True)
class LoggingParams:
    """Logging output parameters."""
    level: str = "INFO"
    format_json: bool = False


@dataclass(frozen=True)
class RelayConfig:
    """Complete relay configuration."""
    leader: LeaderParams = field(default_factory=LeaderParams)
    auth: AuthParams = field(default_factory=AuthParams)
    referral: ReferralParams = field(default_factory=ReferralParams)
    risk: RiskParams = field(default_factory=RiskParams)
    inbox: InboxParams = field(default_factory=InboxParams)
    store: StoreParams = field(default_factory=StoreParams)
    notification: NotificationParams = field(default_factory=NotificationParams)
    webhook: WebhookParams = field(default_factory=WebhookParams)
    server: ServerParams = field(default_factory=ServerParams)
    logging: LoggingParams = field(default_factory=LoggingParams)


def get_default_config() -> RelayConfig:
    """Get the default configuration instance."""
    return RelayConfig(
        leader=LeaderParams(),
        auth=AuthParams(),
        referral=ReferralParams(),
        risk=RiskParams(),
        inbox=InboxParams(),
        store=StoreParams(),
        notification=NotificationParams(),
        webhook=WebhookParams(),
        server=ServerParams(),
        logging=LoggingParams(),
    )
