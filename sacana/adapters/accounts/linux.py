"""Local Linux account management via useradd/usermod and ~/.ssh."""

import asyncio
import logging
import os
import pwd
from typing import List, Optional

import aiohttp

from sacana.domain.errors import (
    AccountActionError,
    AccountAlreadyExists,
    AccountNotFound,
    CommandFailed,
    CommandKilled,
    PublicKeyUnavailable,
)

logger = logging.getLogger(__name__)

KEY_FETCH_TIMEOUT = 30


async def _run_subprocess(cmd_args):
    """Run a subprocess command and return process/stdout/stderr."""
    proc = await asyncio.create_subprocess_exec(
        *cmd_args,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await proc.communicate()
    return proc, stdout, stderr


async def _check_call(cmd_args: List[str]) -> None:
    name = cmd_args[0]
    try:
        proc, _, stderr = await _run_subprocess(cmd_args)
    except OSError as e:
        raise AccountActionError(f"`{name}` can't be executed: {e}") from e

    if proc.returncode < 0:
        raise CommandKilled(name)
    if proc.returncode != 0:
        logger.error("%s exited with %d: %s", name, proc.returncode, stderr.decode(errors="replace").strip())
        raise CommandFailed(name, proc.returncode)


def key_uri(template: str, user: str) -> str:
    return template.replace("{}", user)


class LinuxAccountManager:
    """Creates accounts, installs public keys and manages group membership.

    Must run as root. Public keys are fetched from ``key_uri_template`` with
    ``{}`` replaced by the user name.
    """

    def _passwd(self, user: str) -> Optional[pwd.struct_passwd]:
        try:
            return pwd.getpwnam(user)
        except KeyError:
            return None

    async def account_exists(self, user: str) -> bool:
        return self._passwd(user) is not None

    # ── Public keys ─────────────────────────────────────────────

    async def _check_keys_reachable(self, uri: str) -> None:
        timeout = aiohttp.ClientTimeout(total=KEY_FETCH_TIMEOUT)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.head(uri) as resp:
                    if resp.status >= 400:
                        raise PublicKeyUnavailable(uri, f"HTTP {resp.status}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise PublicKeyUnavailable(uri, str(e)) from e

    async def _fetch_keys(self, uri: str) -> str:
        timeout = aiohttp.ClientTimeout(total=KEY_FETCH_TIMEOUT)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(uri) as resp:
                    body = await resp.text()
                    if resp.status >= 400:
                        raise PublicKeyUnavailable(uri, body.strip() or f"HTTP {resp.status}")
                    return body
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise PublicKeyUnavailable(uri, str(e)) from e

    # ── Actions ─────────────────────────────────────────────────

    async def create_account(
        self,
        user: str,
        local_host: str,
        key_uri_template: str,
        uid: Optional[int] = None,
        gid: Optional[int] = None,
    ) -> None:
        """Create ``user`` with an empty password and install their public keys."""
        await self._check_keys_reachable(key_uri(key_uri_template, user))
        if await self.account_exists(user):
            raise AccountAlreadyExists(local_host)

        cmd = ["useradd", "-m", "-s", "/bin/bash", "-p", ""]
        if uid is not None:
            cmd += ["-u", str(uid)]
        if gid is not None:
            cmd += ["-g", str(gid)]
        cmd.append(user)
        await _check_call(cmd)
        logger.info("created account %s", user)

        await self.refresh_authorized_keys(user, local_host, key_uri_template)

    async def refresh_authorized_keys(self, user: str, local_host: str, key_uri_template: str) -> None:
        """Overwrite ``~/.ssh/authorized_keys`` with the keys published for ``user``."""
        entry = self._passwd(user)
        if entry is None:
            raise AccountNotFound(local_host)

        ssh_dir = os.path.join(entry.pw_dir, ".ssh")
        os.makedirs(ssh_dir, exist_ok=True)
        keys = await self._fetch_keys(key_uri(key_uri_template, user))
        with open(os.path.join(ssh_dir, "authorized_keys"), "w", encoding="utf-8") as f:
            f.write(keys)

        await _check_call(["chmod", "700", ssh_dir])
        await _check_call(["chown", "-R", f"{user}:{user}", ssh_dir])
        logger.info("updated authorized_keys of %s", user)

    async def join_group(self, user: str, group: str, local_host: str) -> None:
        if not await self.account_exists(user):
            raise AccountNotFound(local_host)
        await _check_call(["usermod", "-aG", group, user])
        logger.info("%s joined %s", user, group)
