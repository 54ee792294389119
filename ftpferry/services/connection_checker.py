"""Connection self-check utility for FTP/SFTP sites."""
import asyncio
from dataclasses import dataclass
from typing import Optional

from ..engines.base import TransferClient, create_transfer_client
from ..shared.errors import FtpFerryError
from ..shared.models import SiteConfig


@dataclass
class CheckResult:
    """Result of a single connection check."""

    name: str
    passed: bool
    message: str
    error: Optional[Exception] = None


class ConnectionChecker:
    """Runs stepwise diagnostics against a site without touching a session."""

    def __init__(self, site_config: SiteConfig, client_factory=create_transfer_client):
        self.site_config = site_config
        self.client_factory = client_factory
        self.results: list[CheckResult] = []

    async def run_all_checks(self, remote_path: str = "/") -> list[CheckResult]:
        """
        Run all connection checks, stopping at the first failure.

        Returns:
            List of check results
        """
        self.results = []

        self.results.append(await self._check_tcp())
        if not self.results[-1].passed:
            return self.results

        client = self.client_factory(self.site_config)
        try:
            self.results.append(await self._check_login(client))
            if self.results[-1].passed:
                self.results.append(await self._check_listing(client, remote_path))
        finally:
            await client.close()

        return self.results

    async def _check_tcp(self) -> CheckResult:
        """Check if a TCP connection can be established."""
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(self.site_config.host, self.site_config.port),
                timeout=self.site_config.timeout,
            )
            writer.close()
            await writer.wait_closed()
            return CheckResult(
                name="TCP Connection",
                passed=True,
                message=f"Successfully connected to {self.site_config.host}:{self.site_config.port}"
            )
        except (OSError, asyncio.TimeoutError) as e:
            return CheckResult(
                name="TCP Connection",
                passed=False,
                message=f"Failed to connect: {e}",
                error=e
            )

    async def _check_login(self, client: TransferClient) -> CheckResult:
        """Check if the protocol handshake and login succeed."""
        try:
            await client.connect()
            return CheckResult(
                name="Login",
                passed=True,
                message=f"{self.site_config.protocol.upper()} authentication successful"
            )
        except FtpFerryError as e:
            return CheckResult(
                name="Login",
                passed=False,
                message=f"Login error: {e.message}",
                error=e
            )

    async def _check_listing(self, client: TransferClient, remote_path: str) -> CheckResult:
        """Check if ``remote_path`` can be listed."""
        try:
            entries = await client.list_dir(remote_path)
            return CheckResult(
                name="Directory Listing",
                passed=True,
                message=f"Listed {remote_path} ({len(entries)} entries)"
            )
        except FtpFerryError as e:
            return CheckResult(
                name="Directory Listing",
                passed=False,
                message=f"Cannot list {remote_path}: {e.message}",
                error=e
            )

    def all_passed(self) -> bool:
        """Check if all checks passed."""
        return bool(self.results) and all(result.passed for result in self.results)

    def get_summary(self) -> str:
        """Get a summary of all check results."""
        lines = []
        for result in self.results:
            status = "PASS" if result.passed else "FAIL"
            lines.append(f"{status} {result.name}: {result.message}")
        return "\n".join(lines)
