"""Attachment migration from TargetProcess into the GitHub repository contents."""

from __future__ import annotations

import json
import logging
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Final

from github import GithubException, UnknownObjectException

from .exceptions import AttachmentContentError, DestinationApiError
from .models import MigratedAttachmentRecord

if TYPE_CHECKING:
    import github.Repository

    from .models import EntityType, SourceAttachment
    from .target_process import TargetProcessClient

logger: logging.Logger = logging.getLogger(__name__)

ATTACHMENTS_ROOT: Final[str] = "tp_attachments"


def attachment_path(owning_type: EntityType, owning_id: int, attachment_id: int, original_name: str) -> str:
    """Deterministic repository path of a migrated attachment."""
    ext = PurePosixPath(original_name).suffix if original_name else ""
    return f"{ATTACHMENTS_ROOT}/{owning_type.value}/{owning_id}/{attachment_id}{ext}"


def check_not_error_page(content: bytes, context: str) -> None:
    """Reject downloads that are really a TargetProcess JSON error response.

    Raises:
        AttachmentContentError: if the bytes decode to a JSON object with both
            ``Status`` and ``Message`` keys.
    """
    try:
        parsed = json.loads(content.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return
    if isinstance(parsed, dict) and "Status" in parsed and "Message" in parsed:
        msg = f"TargetProcess returned an error instead of {context}: {parsed['Status']} - {parsed['Message']}"
        raise AttachmentContentError(msg)


class AttachmentMigrator:
    """Copies TargetProcess attachments into the repository at content-addressed paths.

    A path is derived from the owning entity and the attachment id only, so a
    re-run finds the file already in place and leaves it untouched.
    """

    _tp_client: TargetProcessClient
    _github_repo: github.Repository.Repository
    _branch: str | None

    def __init__(
        self,
        tp_client: TargetProcessClient,
        github_repo: github.Repository.Repository,
        branch: str | None = None,
    ) -> None:
        self._tp_client = tp_client
        self._github_repo = github_repo
        self._branch = branch
        self.uploaded_files_count: int = 0
        self.skipped_files_count: int = 0

    @property
    def branch(self) -> str:
        """Branch receiving the files; the repository default branch unless configured."""
        if self._branch is None:
            self._branch = self._github_repo.default_branch
        return self._branch

    def blob_url(self, path: str) -> str:
        return f"https://github.com/{self._github_repo.full_name}/blob/{self.branch}/{path}"

    def migrate(
        self, owning_type: EntityType, owning_id: int, *, dry_run: bool = False
    ) -> list[MigratedAttachmentRecord]:
        """Migrate all attachments of one entity, returning their records in source order.

        In dry-run mode only the records are computed: nothing is downloaded and
        nothing is uploaded.
        """
        records: list[MigratedAttachmentRecord] = []
        for attachment in self._tp_client.attachments_for(owning_type, owning_id):
            path = attachment_path(owning_type, owning_id, attachment.id, attachment.original_filename)
            records.append(
                MigratedAttachmentRecord(
                    source_attachment_id=attachment.id,
                    original_name=attachment.original_filename,
                    destination_path=path,
                    destination_url=self.blob_url(path),
                )
            )
            if dry_run:
                continue
            self._upload(attachment, path)

        return records

    def file_exists(self, path: str) -> bool:
        try:
            self._github_repo.get_contents(path, ref=self.branch)
        except UnknownObjectException:
            return False
        except GithubException as e:
            msg = f"GitHub content lookup for {path} failed (status={e.status}): {e.data}"
            raise DestinationApiError(msg) from e
        return True

    def _upload(self, attachment: SourceAttachment, path: str) -> None:
        if self.file_exists(path):
            logger.debug(f"Attachment {attachment.id} already present at {path}, skipping")
            self.skipped_files_count += 1
            return

        content = self._tp_client.download_attachment(attachment.id, attachment.original_filename)
        check_not_error_page(content, f"attachment {attachment.id} ({attachment.original_filename})")

        owner = f"{attachment.owning_type.value}#{attachment.owning_id}"
        try:
            self._github_repo.create_file(
                path,
                f"Import TP attachment {owner} ({attachment.id})",
                content,
                branch=self.branch,
            )
        except GithubException as e:
            msg = f"GitHub upload of {path} failed (status={e.status}): {e.data}"
            raise DestinationApiError(msg) from e

        self.uploaded_files_count += 1
        logger.debug(f"Uploaded attachment {attachment.original_filename} of {owner} to {path}")
