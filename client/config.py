"""
Client configuration.

Defaults below, overridden by PATRICIANS_* environment variables, then by
command-line flags.
"""

import argparse
import os
from dataclasses import dataclass

from client.patricians.state import PLAYERS

ENV_PREFIX = "PATRICIANS_"


@dataclass
class ClientConfig:
    base_url: str = "http://localhost:8080"    # game server
    host: str = "127.0.0.1"                    # render bridge bind address
    port: int = 8766
    player: str = None                         # None = hot-seat
    request_timeout: float = 10.0
    refresh_interval: float = 2.0              # seconds, 0 = refresh on demand only
    auto_complete: bool = False
    log_level: str = "INFO"

    def __post_init__(self):
        if self.player is not None:
            self.player = self.player.upper()
            if self.player not in PLAYERS:
                raise ValueError(f"Unknown player: {self.player}. Expected one of {list(PLAYERS)}")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        if self.refresh_interval < 0:
            raise ValueError("refresh_interval cannot be negative")

    @classmethod
    def from_env(cls, environ=None):
        env = os.environ if environ is None else environ

        def get(name):
            return env.get(ENV_PREFIX + name)

        kwargs = {}
        if get("BASE_URL"):
            kwargs["base_url"] = get("BASE_URL")
        if get("HOST"):
            kwargs["host"] = get("HOST")
        if get("PORT"):
            kwargs["port"] = int(get("PORT"))
        if get("PLAYER"):
            kwargs["player"] = get("PLAYER")
        if get("TIMEOUT"):
            kwargs["request_timeout"] = float(get("TIMEOUT"))
        if get("REFRESH_INTERVAL"):
            kwargs["refresh_interval"] = float(get("REFRESH_INTERVAL"))
        if get("AUTO_COMPLETE"):
            kwargs["auto_complete"] = get("AUTO_COMPLETE").lower() in ("1", "true", "yes", "on")
        if get("LOG_LEVEL"):
            kwargs["log_level"] = get("LOG_LEVEL").upper()
        return cls(**kwargs)


def parse_args(argv=None, environ=None):
    base = ClientConfig.from_env(environ)

    parser = argparse.ArgumentParser(description="Patricians game client and render bridge")
    parser.add_argument("--base-url", default=base.base_url, help="Game server URL")
    parser.add_argument("--host", default=base.host, help="Render bridge bind address")
    parser.add_argument("--port", type=int, default=base.port, help="Render bridge port")
    parser.add_argument("--player", default=base.player, type=str.upper, choices=PLAYERS,
                        help="Play as this side (default: hot-seat)")
    parser.add_argument("--timeout", type=float, default=base.request_timeout, help="HTTP timeout in seconds")
    parser.add_argument("--refresh-interval", type=float, default=base.refresh_interval,
                        help="Seconds between game state refreshes (0 disables)")
    parser.add_argument("--auto-complete", action="store_true", default=base.auto_complete,
                        help="Show the auto-complete button for initial influence")
    parser.add_argument("--log-level", default=base.log_level,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args(argv)

    return ClientConfig(
        base_url=args.base_url,
        host=args.host,
        port=args.port,
        player=args.player,
        request_timeout=args.timeout,
        refresh_interval=args.refresh_interval,
        auto_complete=args.auto_complete,
        log_level=args.log_level,
    )
