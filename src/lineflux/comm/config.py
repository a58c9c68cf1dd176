"""
Configuration Module.

This module defines the immutable configuration shared by every request issued
through an [`InfluxClient`][lineflux.comm.InfluxClient].
"""

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

DEFAULT_TIMEOUT = 5.0


@dataclass(frozen=True)
class Credentials:
    """
    The username/password pair sent with every request when authentication is enabled.
    """

    username: str
    password: str

    def __repr__(self) -> str:
        # never leak the password through logs or tracebacks
        return f"Credentials(username={self.username!r}, password='***')"


@dataclass(frozen=True)
class ClientConfig:
    """
    Connection settings of an [`InfluxClient`][lineflux.comm.InfluxClient].

    The configuration is frozen: it can be shared by concurrent callers
    without locking. Use [`with_auth()`][lineflux.comm.config.ClientConfig.with_auth]
    to derive an authenticated copy.
    """

    url: str
    """
    Base URL of the server (e.g. `http://localhost:8086`).

    A trailing slash is stripped.
    """

    database: str
    """The database every query and write is run against."""

    auth: Optional[Credentials] = None
    """Optional credentials, sent as the `u`/`p` parameters."""

    timeout: float = DEFAULT_TIMEOUT
    """Request timeout in seconds, applied by the transport."""

    def __post_init__(self):
        if not self.url:
            raise ValueError("Empty server URL")
        if not self.database:
            raise ValueError("Empty database name")
        # frozen dataclass: bypass __setattr__ to normalize the URL
        object.__setattr__(self, "url", self.url.rstrip("/"))

    def with_auth(self, username: str, password: str) -> "ClientConfig":
        """Returns a copy of the configuration carrying the given credentials."""
        return replace(self, auth=Credentials(username=username, password=password))

    @classmethod
    def from_env(
        cls, prefix: str = "INFLUXDB_", environ: Optional[Mapping[str, str]] = None
    ) -> "ClientConfig":
        """
        Builds the configuration from environment variables.

        The following variables are read (with the default prefix):
        `INFLUXDB_URL`, `INFLUXDB_DATABASE`, `INFLUXDB_USERNAME`,
        `INFLUXDB_PASSWORD`, `INFLUXDB_TIMEOUT`. Credentials are only set when
        the username is present.

        Args:
            prefix: Prefix of the variable names.
            environ: The mapping to read from. Defaults to `os.environ`.

        Raises:
            ValueError: If the URL or the database is missing, or the timeout
                is not a number.
        """
        env = os.environ if environ is None else environ

        url = env.get(f"{prefix}URL")
        database = env.get(f"{prefix}DATABASE")
        if not url or not database:
            raise ValueError(
                f"'{prefix}URL' and '{prefix}DATABASE' must be set in the environment"
            )

        raw_timeout = env.get(f"{prefix}TIMEOUT")
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
        except ValueError as e:
            raise ValueError(f"Invalid '{prefix}TIMEOUT' value '{raw_timeout}'") from e

        username = env.get(f"{prefix}USERNAME")
        auth = (
            Credentials(username=username, password=env.get(f"{prefix}PASSWORD", ""))
            if username
            else None
        )
        return cls(url=url, database=database, auth=auth, timeout=timeout)
