"""Read access to the TargetProcess REST API (v1)."""

from __future__ import annotations

import gzip
import logging
import zlib
from typing import TYPE_CHECKING, Any, Final
from urllib.parse import quote, urlparse

import requests

from .exceptions import AttachmentContentError, ConfigError, SourceApiError
from .models import EntityType, SourceAttachment, SourceEntity

if TYPE_CHECKING:
    from collections.abc import Iterator

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_TAKE: Final[int] = 200
SELECT_FIELDS: Final[tuple[str, ...]] = ("Id", "Name", "Description")
DETAIL_FIELDS: Final[tuple[str, ...]] = ("Effort",)
NOT_DONE_FILTER: Final[str] = "EntityState.Name ne 'Done'"
GZIP_MAGIC: Final[bytes] = b"\x1f\x8b"


def not_done_where(scope: str | None = None) -> str:
    """Combine a caller scope with the mandatory filter excluding Done items."""
    if scope:
        return f"{scope} and {NOT_DONE_FILTER}"
    return NOT_DONE_FILTER


def team_scope(team_field: str, team_id: int | None) -> str | None:
    if team_id is None:
        return None
    return f"{team_field} eq {team_id}"


def maybe_gunzip(content: bytes) -> bytes:
    """Decompress payloads that arrive gzip-compressed despite asking for identity encoding."""
    if content[:2] == GZIP_MAGIC:
        return gzip.decompress(content)
    return content


class TargetProcessClient:
    """Paginated access to TargetProcess entity collections and attachments."""

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        *,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url: str = (base_url or "").strip().rstrip("/")
        self._username: str = username
        self._password: str = password
        self._validate()

        if session is None:
            session = requests.Session()
            session.auth = (username, password)
            session.headers.update({"Accept": "application/json", "User-Agent": "tp-to-github"})
        self._session: requests.Session = session

    def _validate(self) -> None:
        if not self.base_url:
            msg = "TP_BASE_URL is required"
            raise ConfigError(msg)
        parsed = urlparse(self.base_url)
        if not parsed.scheme or not parsed.netloc:
            msg = f"TP_BASE_URL is not a valid URL: {self.base_url!r}"
            raise ConfigError(msg)
        if not (self._username or "").strip():
            msg = "TP_USERNAME is required"
            raise ConfigError(msg)
        if not (self._password or "").strip():
            msg = "TP_PASSWORD is required"
            raise ConfigError(msg)

    def _get(self, path: str, params: dict[str, Any] | None = None, **kwargs: Any) -> requests.Response:  # noqa: ANN401
        url = f"{self.base_url}{path}"
        try:
            response = self._session.get(url, params=params, **kwargs)
        except requests.RequestException as e:
            msg = f"TargetProcess request to {path} failed: {e}"
            raise SourceApiError(msg) from e

        if not response.ok:
            msg = f"TargetProcess GET {path} failed (status={response.status_code}): {response.text}"
            raise SourceApiError(msg)
        return response

    def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:  # noqa: ANN401
        response = self._get(path, params)
        try:
            return response.json()
        except ValueError as e:
            msg = f"TargetProcess GET {path} returned invalid JSON: {e}"
            raise SourceApiError(msg) from e

    def _paginate(self, path: str, params: dict[str, Any], take: int) -> Iterator[dict[str, Any]]:
        """Yield items page by page until a page comes back empty."""
        if take <= 0:
            msg = f"Page size must be positive, got {take}"
            raise ValueError(msg)

        skip = 0
        while True:
            body = self._get_json(path, {**params, "take": take, "skip": skip})
            if not isinstance(body, dict) or not isinstance(body.get("Items"), list):
                msg = f"TargetProcess GET {path} skip={skip} returned a page without an Items list: {body!r}"
                raise SourceApiError(msg)
            items: list[dict[str, Any]] = body["Items"]
            logger.debug(f"GET {path} skip={skip} returned {len(items)} item(s)")
            if not items:
                return
            yield from items
            skip += take

    def fetch(self, collection: str, where: str | None = None, take: int = DEFAULT_TAKE) -> Iterator[dict[str, Any]]:
        """Lazily yield raw items of a collection, excluding Done ones.

        Every call starts again from the first page.
        """
        params = {"where": not_done_where(where), "select": ",".join(SELECT_FIELDS)}
        return self._paginate(f"/api/v1/{collection}", params, take)

    def entities(
        self, entity_type: EntityType, scope: str | None = None, take: int = DEFAULT_TAKE
    ) -> Iterator[SourceEntity]:
        for item in self.fetch(entity_type.collection, scope, take):
            yield SourceEntity.from_api(entity_type, item)

    def projects(self, team_id: int | None = None, take: int = DEFAULT_TAKE) -> Iterator[SourceEntity]:
        return self.entities(EntityType.PROJECT, team_scope("Team.Id", team_id), take)

    def epics(self, team_id: int | None = None, take: int = DEFAULT_TAKE) -> Iterator[SourceEntity]:
        return self.entities(EntityType.EPIC, team_scope("Team.Id", team_id), take)

    def features(self, team_id: int | None = None, take: int = DEFAULT_TAKE) -> Iterator[SourceEntity]:
        return self.entities(EntityType.FEATURE, team_scope("Team.Id", team_id), take)

    def user_stories(self, team_id: int | None = None, take: int = DEFAULT_TAKE) -> Iterator[SourceEntity]:
        return self.entities(EntityType.USER_STORY, team_scope("Team.Id", team_id), take)

    def tasks_for_user_story(
        self, story_id: int, team_id: int | None = None, take: int = DEFAULT_TAKE
    ) -> Iterator[SourceEntity]:
        scope = f"UserStory.Id eq {story_id}"
        team = team_scope("UserStory.Team.Id", team_id)
        if team:
            scope = f"{scope} and {team}"
        return self.entities(EntityType.TASK, scope, take)

    def entity(self, entity_type: EntityType, entity_id: int) -> SourceEntity:
        """Fetch one entity including its parent reference and effort."""
        fields = [*SELECT_FIELDS, *DETAIL_FIELDS]
        if entity_type.parent_field:
            fields.append(entity_type.parent_field)
        payload = self._get_json(f"/api/v1/{entity_type.collection}/{entity_id}", {"select": ",".join(fields)})
        return SourceEntity.from_api(entity_type, payload)

    def attachments_for(
        self, entity_type: EntityType, entity_id: int, take: int = DEFAULT_TAKE
    ) -> list[SourceAttachment]:
        path = f"/api/v1/{entity_type.collection}/{entity_id}/Attachments"
        return [
            SourceAttachment(
                id=int(item["Id"]),
                owning_type=entity_type,
                owning_id=entity_id,
                original_filename=str(item.get("Name") or ""),
            )
            for item in self._paginate(path, {"select": "Id,Name"}, take)
        ]

    def download_attachment(self, attachment_id: int, filename: str) -> bytes:
        """Download the raw bytes of an attachment."""
        path = f"/api/attachments/{attachment_id}/{quote(filename, safe='')}"
        response = self._get(path, headers={"Accept": "*/*", "Accept-Encoding": "identity"})
        try:
            return maybe_gunzip(response.content)
        except (OSError, EOFError, zlib.error) as e:
            msg = f"TargetProcess attachment {attachment_id} ({filename}) is not valid gzip: {e}"
            raise AttachmentContentError(msg) from e

    def assigned_user_emails(self, entity_type: EntityType, entity_id: int) -> list[str]:
        path = f"/api/v1/{entity_type.collection}/{entity_id}/AssignedUser"
        users = self._paginate(path, {"select": "Id,Email"}, DEFAULT_TAKE)
        return [str(user["Email"]) for user in users if user.get("Email")]
