"""GitHub App implementation of the CI status provider.

Authentication follows the GitHub App flow:

1. Mint a short-lived RS256 JWT from the app id and private key (fetched
   from the secret provider on every request).
2. Use it to list installations and to create installation access tokens.
3. Call the Actions REST API with the installation token.

All HTTP goes through one shared ``httpx.AsyncClient`` whose ``base_url``
points at the GitHub API.
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import Any
from urllib.parse import quote

import httpx
from jose import jwt
from jose.exceptions import JOSEError
from loguru import logger

from actionboard.dashboard_service.credentials.base import SecretProvider
from actionboard.dashboard_service.errors import (
    SecretUnavailableError,
    UpstreamError,
    UpstreamForbiddenError,
    UpstreamNotFoundError,
    UpstreamUnavailableError,
)
from actionboard.dashboard_service.models.status import WorkflowRun, workflow_runs_url
from actionboard.dashboard_service.upstream.base import Installation, InstallationContext

API_VERSION = "2022-11-28"
# GitHub rejects app JWTs valid for more than 10 minutes; backdate iat for clock drift.
_JWT_BACKDATE = 60
_JWT_LIFETIME = 540
_INSTALLATIONS_PAGE_SIZE = 100


def _segment(value: str) -> str:
    return quote(value, safe="")


class GitHubAppProvider:
    """CIStatusProvider backed by the GitHub REST API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        secrets: SecretProvider,
        *,
        app_id_secret: str = "github-app-id",
        private_key_secret: str = "github-app-private-key",  # noqa: S107
    ) -> None:
        self._client = client
        self._secrets = secrets
        self._app_id_secret = app_id_secret
        self._private_key_secret = private_key_secret

    # -- App authentication ----------------------------------------------------

    async def _app_jwt(self) -> str:
        app_id = await self._secrets.get_secret(self._app_id_secret)
        private_key = await self._secrets.get_secret(self._private_key_secret)
        now = int(time.time())
        claims = {"iat": now - _JWT_BACKDATE, "exp": now + _JWT_LIFETIME, "iss": app_id}
        try:
            return jwt.encode(claims, private_key, algorithm="RS256")
        except JOSEError as exc:
            msg = f"GitHub App private key could not be used to sign a token: {exc}"
            raise SecretUnavailableError(msg) from exc

    async def list_installations(self) -> list[Installation]:
        token = await self._app_jwt()
        installations: list[Installation] = []
        page = 1
        while True:
            data = await self._request(
                "GET",
                "/app/installations",
                token,
                what="GitHub App installations",
                params={"per_page": _INSTALLATIONS_PAGE_SIZE, "page": page},
            )
            for item in data:
                account = item.get("account") or {}
                installations.append(Installation(id=int(item["id"]), account_login=str(account.get("login", ""))))
            if len(data) < _INSTALLATIONS_PAGE_SIZE:
                break
            page += 1
        logger.debug("GitHub App has {} installations", len(installations))
        return installations

    async def installation_context(self, installation_id: int) -> InstallationContext:
        token = await self._app_jwt()
        data = await self._request(
            "POST",
            f"/app/installations/{installation_id}/access_tokens",
            token,
            what=f"installation {installation_id}",
        )
        return InstallationContext(installation_id=installation_id, token=data["token"])

    # -- Actions API -----------------------------------------------------------

    async def get_latest_run(
        self, ctx: InstallationContext, owner: str, repo: str, workflow: str
    ) -> WorkflowRun | None:
        data = await self._request(
            "GET",
            f"/repos/{_segment(owner)}/{_segment(repo)}/actions/workflows/{_segment(workflow)}/runs",
            ctx.token,
            what=f"workflow '{workflow}' in {owner}/{repo}",
            params={"per_page": 1, "page": 1},
        )
        runs = data.get("workflow_runs") or []
        if not runs:
            return None
        run = runs[0]
        return WorkflowRun(
            status=run.get("status"),
            conclusion=run.get("conclusion"),
            url=run.get("html_url") or workflow_runs_url(owner, repo, workflow),
            updated_at=_parse_timestamp(run.get("updated_at")),
        )

    async def get_workflow(self, ctx: InstallationContext, owner: str, repo: str, workflow: str) -> None:
        await self._request(
            "GET",
            f"/repos/{_segment(owner)}/{_segment(repo)}/actions/workflows/{_segment(workflow)}",
            ctx.token,
            what=f"workflow '{workflow}' in {owner}/{repo}",
        )

    # -- Transport -------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        token: str,
        *,
        what: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
        }
        try:
            resp = await self._client.request(method, path, headers=headers, params=params)
        except httpx.TimeoutException as exc:
            msg = f"GitHub timed out fetching {what}."
            raise UpstreamUnavailableError(msg) from exc
        except httpx.HTTPError as exc:
            msg = f"GitHub request for {what} failed: {exc}"
            raise UpstreamUnavailableError(msg) from exc

        _raise_for_status(resp, what)
        return resp.json()


def _raise_for_status(resp: httpx.Response, what: str) -> None:
    """Translate a GitHub error response into an ``UpstreamError`` subclass."""
    code = resp.status_code
    if code < 400:
        return

    detail = _error_message(resp)
    rate_limited = code == 429 or (code == 403 and resp.headers.get("x-ratelimit-remaining") == "0")
    if rate_limited:
        msg = f"GitHub rate limit reached while fetching {what}."
        raise UpstreamUnavailableError(msg)
    if code == 404:
        msg = f"GitHub could not find {what}."
        raise UpstreamNotFoundError(msg)
    if code in (401, 403):
        msg = f"GitHub denied access to {what}: {detail}"
        raise UpstreamForbiddenError(msg)
    if code >= 500:
        msg = f"GitHub returned {code} for {what}."
        raise UpstreamUnavailableError(msg)
    msg = f"GitHub rejected the request for {what} ({code}): {detail}"
    raise UpstreamError(msg)


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return resp.reason_phrase


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None
