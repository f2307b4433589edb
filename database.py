"""
Gateway to the hosted backend (Supabase).

One httpx.AsyncClient, built once at startup, serves both halves:
- table helpers over the REST endpoint (/rest/v1)
- AuthClient over the auth endpoint (/auth/v1), bound to per-browser storage

Reads degrade to an empty list, writes to None/False. Every failure is logged
here and never retried.
"""
import time
from typing import Callable, List, MutableMapping, Optional

import httpx
from pydantic import ValidationError

from logging_config import get_logger
from schemas import AdminUser, Project, ProjectCreate, Session

logger = get_logger(__name__)

PROJECTS = "projects"

SESSION_KEY = "auth_session"
# Refresh a little before the provider would reject the token
EXPIRY_MARGIN_SECONDS = 10

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
TOKEN_REFRESHED = "TOKEN_REFRESHED"

AuthListener = Callable[[str, Optional[Session]], None]


class AuthError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def error_message(resp: httpx.Response) -> str:
    """Pull the human-readable message out of a provider error body."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text or resp.reason_phrase
    if isinstance(body, dict):
        for key in ("msg", "error_description", "message", "error"):
            if body.get(key):
                return str(body[key])
    return resp.text


class Subscription:
    def __init__(self, listeners: List[AuthListener], listener: AuthListener):
        self._listeners = listeners
        self._listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._listeners.remove(self._listener)


class AuthClient:
    """Password auth against the provider, persisting the session in `storage`.

    `storage` is any mutable mapping; the web app passes the signed session
    cookie so each browser carries its own session.
    """

    def __init__(self, http: httpx.AsyncClient, storage: MutableMapping):
        self._http = http
        self._storage = storage
        self._listeners: List[AuthListener] = []

    def on_auth_state_change(self, listener: AuthListener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self._listeners, listener)

    def _emit(self, event: str, session: Optional[Session]) -> None:
        for listener in list(self._listeners):
            listener(event, session)

    def _stored_session(self) -> Optional[Session]:
        raw = self._storage.get(SESSION_KEY)
        if not raw:
            return None
        try:
            return Session.model_validate(raw)
        except ValidationError:
            logger.warning("stored_session_invalid")
            self._storage.pop(SESSION_KEY, None)
            return None

    def _save_session(self, session: Session) -> None:
        self._storage[SESSION_KEY] = session.model_dump(mode="json")

    async def _token(self, grant_type: str, body: dict) -> Session:
        try:
            resp = await self._http.post("/auth/v1/token", params={"grant_type": grant_type}, json=body)
        except httpx.HTTPError as e:
            raise AuthError(str(e)) from e
        if resp.is_error:
            raise AuthError(error_message(resp), resp.status_code)

        data = resp.json()
        expires_at = data.get("expires_at") or int(time.time()) + int(data.get("expires_in", 3600))
        user = data.get("user") or {}
        return Session(
            access_token=data["access_token"],
            refresh_token=data["refresh_token"],
            expires_at=expires_at,
            user=AdminUser(id=str(user.get("id", "")), email=user.get("email") or ""),
        )

    async def get_session(self) -> Optional[Session]:
        session = self._stored_session()
        if session is None:
            return None
        if session.expires_at is None or session.expires_at - EXPIRY_MARGIN_SECONDS > time.time():
            return session

        try:
            refreshed = await self._token("refresh_token", {"refresh_token": session.refresh_token})
        except AuthError as e:
            logger.warning("session_refresh_failed", error=e.message, status_code=e.status_code)
            self._storage.pop(SESSION_KEY, None)
            self._emit(SIGNED_OUT, None)
            return None

        self._save_session(refreshed)
        self._emit(TOKEN_REFRESHED, refreshed)
        return refreshed

    async def sign_in_with_password(self, email: str, password: str) -> Optional[AuthError]:
        """Returns None on success, the provider error otherwise."""
        try:
            session = await self._token("password", {"email": email, "password": password})
        except AuthError as e:
            return e
        self._save_session(session)
        self._emit(SIGNED_IN, session)
        return None

    async def sign_out(self) -> None:
        session = self._stored_session()
        self._storage.pop(SESSION_KEY, None)
        if session is not None:
            try:
                resp = await self._http.post(
                    "/auth/v1/logout",
                    headers={"Authorization": f"Bearer {session.access_token}"},
                )
                if resp.is_error:
                    logger.warning("sign_out_failed", status_code=resp.status_code, error=error_message(resp))
            except httpx.HTTPError as e:
                logger.warning("sign_out_failed", error=str(e))
        self._emit(SIGNED_OUT, None)


class Gateway:
    def __init__(self, base_url: str, api_key: str, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"apikey": api_key, "Authorization": f"Bearer {api_key}"},
            transport=transport,
        )

    def auth(self, storage: MutableMapping) -> AuthClient:
        return AuthClient(self._http, storage)

    @staticmethod
    def _bearer(access_token: Optional[str]) -> dict:
        return {"Authorization": f"Bearer {access_token}"} if access_token else {}

    async def get_documents(
        self,
        collection: str,
        featured: Optional[bool] = None,
        access_token: Optional[str] = None,
    ) -> List[Project]:
        """All records, newest first. Empty list when the backend errors; rows
        that fail validation are logged and skipped."""
        params = {"select": "*", "order": "created_at.desc"}
        if featured is not None:
            params["featured"] = f"eq.{str(featured).lower()}"
        try:
            resp = await self._http.get(f"/rest/v1/{collection}", params=params, headers=self._bearer(access_token))
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "projects_fetch_failed",
                collection=collection,
                featured=featured,
                status_code=e.response.status_code,
                error=error_message(e.response),
            )
            return []
        except httpx.HTTPError as e:
            logger.error("projects_fetch_failed", collection=collection, featured=featured, error=str(e))
            return []

        try:
            rows = resp.json()
        except ValueError as e:
            logger.error("projects_fetch_failed", collection=collection, featured=featured, error=str(e))
            return []
        if not isinstance(rows, list):
            logger.error("projects_fetch_failed", collection=collection, featured=featured, error="unexpected body")
            return []

        projects = []
        for row in rows:
            try:
                projects.append(Project.model_validate(row))
            except ValidationError as e:
                # skip the row, keep the rest
                row_id = row.get("id") if isinstance(row, dict) else None
                logger.warning("project_row_invalid", collection=collection, project_id=row_id, error_count=e.error_count())
        return projects

    async def get_featured_documents(self, collection: str) -> List[Project]:
        return await self.get_documents(collection, featured=True)

    async def create_document(self, collection: str, payload: ProjectCreate, access_token: str) -> Optional[Project]:
        """Insert and return the stored record (id and created_at filled in by the server)."""
        try:
            resp = await self._http.post(
                f"/rest/v1/{collection}",
                json=payload.model_dump(mode="json", exclude_none=True),
                headers={"Prefer": "return=representation", **self._bearer(access_token)},
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "project_create_failed",
                title=payload.title,
                status_code=e.response.status_code,
                error=error_message(e.response),
            )
            return None
        except httpx.HTTPError as e:
            logger.error("project_create_failed", title=payload.title, error=str(e))
            return None

        rows = resp.json()
        if isinstance(rows, list):
            if not rows:
                logger.error("project_create_failed", title=payload.title, error="empty representation")
                return None
            rows = rows[0]
        project = Project.model_validate(rows)
        logger.info("project_created", project_id=project.id, category=project.category, featured=project.featured)
        return project

    async def delete_document(self, collection: str, document_id: str, access_token: str) -> bool:
        try:
            resp = await self._http.delete(
                f"/rest/v1/{collection}",
                params={"id": f"eq.{document_id}"},
                headers=self._bearer(access_token),
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "project_delete_failed",
                project_id=document_id,
                status_code=e.response.status_code,
                error=error_message(e.response),
            )
            return False
        except httpx.HTTPError as e:
            logger.error("project_delete_failed", project_id=document_id, error=str(e))
            return False
        logger.info("project_deleted", project_id=document_id)
        return True

    async def ping(self) -> bool:
        try:
            resp = await self._http.get("/auth/v1/health")
        except httpx.HTTPError:
            return False
        return resp.is_success

    async def aclose(self) -> None:
        await self._http.aclose()
