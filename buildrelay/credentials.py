from __future__ import annotations

import os
import re
from contextlib import contextmanager
from typing import Iterator, Mapping

from .errors import CredentialResolutionError


def env_prefix(name: str) -> str:
    """``maven-repo-creds`` -> ``MAVEN_REPO_CREDS``."""
    return re.sub(r"[^A-Za-z0-9]+", "_", name).strip("_").upper()


class CredentialStore:
    """Resolve named credential bundles injected by the CI host.

    A username/password bundle is exposed as ``<NAME>_USR`` and
    ``<NAME>_PSW``; a secret text as ``<NAME>``. Values are only handed to
    the block that asked for them and are never cached.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ if environ is not None else os.environ

    def resolve(self, name: str) -> dict[str, str]:
        prefix = env_prefix(name)
        user = self._environ.get(f"{prefix}_USR")
        password = self._environ.get(f"{prefix}_PSW")
        if user and password:
            return {f"{prefix}_USR": user, f"{prefix}_PSW": password}
        secret = self._environ.get(prefix)
        if secret:
            return {prefix: secret}
        raise CredentialResolutionError(f"Credential bundle '{name}' is not available.")

    @contextmanager
    def scoped(self, name: str) -> Iterator[dict[str, str]]:
        values = self.resolve(name)
        try:
            yield values
        finally:
            values.clear()
