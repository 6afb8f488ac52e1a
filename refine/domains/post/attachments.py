# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attachment bookkeeping for posts.

Pure helpers over ``PostDocument``: locating an attachment, deciding whether
a user may edit the Drive file behind it, and carrying link caches over when
a post's attachment list is replaced.
"""

from enum import Enum
from typing import NamedTuple

from refine.models.common import new_id
from refine.models.post import (
    AttachmentDocument,
    AttachmentInfo,
    AttachmentTemplate,
    MarkingCriterion,
    MarkingCriterionTemplate,
    PostDocument,
)


class AttachmentSource(str, Enum):
    """Which list of a post an attachment lives in."""

    ATTACHMENTS = "attachments"
    SUBMISSION_TEMPLATES = "submission_templates"
    STUDENT_ATTACHMENTS = "student_attachments"


class LocatedAttachment(NamedTuple):
    attachment: AttachmentDocument
    source: AttachmentSource


def find_attachment(post: PostDocument, attachment_id: str, owner_id: str) -> LocatedAttachment | None:
    """Find an attachment by id.

    Post attachments are searched first, then submission templates, then the
    owner's own submitted files.
    """
    for attachment in post.attachments:
        if attachment.id == attachment_id:
            return LocatedAttachment(attachment, AttachmentSource.ATTACHMENTS)
    for attachment in post.submission_templates or []:
        if attachment.id == attachment_id:
            return LocatedAttachment(attachment, AttachmentSource.SUBMISSION_TEMPLATES)
    for attachment in post.student_attachments.get(owner_id, []):
        if attachment.id == attachment_id:
            return LocatedAttachment(attachment, AttachmentSource.STUDENT_ATTACHMENTS)
    return None


def has_edit_access(
    post: PostDocument,
    located: LocatedAttachment,
    owner_id: str,
    accessor_id: str,
) -> bool:
    """Decide whether the accessor gets writer access to the file.

    Nothing is editable once the owner has submitted, and nobody edits a
    file on someone else's behalf. Otherwise personal copies, files marked
    editable, the poster's own files and a student's own submission files
    are editable.
    """
    if owner_id in post.submission_dates or owner_id != accessor_id:
        return False
    attachment = located.attachment
    return (
        attachment.share_mode == "copied"
        or attachment.others_can_edit
        or post.poster_id == accessor_id
        or located.source is AttachmentSource.STUDENT_ATTACHMENTS
    )


def record_link(
    attachment: AttachmentDocument,
    owner_id: str,
    accessor_id: str,
    link: str,
    file_id: str,
) -> None:
    """Cache a resolved link on the attachment."""
    if attachment.share_mode == "copied":
        attachment.per_user_links[owner_id] = link
        attachment.per_user_file_ids[owner_id] = file_id
        users = attachment.per_user_users_with_access.setdefault(owner_id, [])
    else:
        attachment.cached_link = link
        users = attachment.users_with_access
    if accessor_id not in users:
        users.append(accessor_id)


def new_attachment(template: AttachmentTemplate, **overrides) -> AttachmentDocument:
    """Create a stored attachment with a fresh id."""
    return AttachmentDocument(id=new_id(), **{**template.model_dump(), **overrides})


def merge_attachments(
    existing: list[AttachmentDocument],
    templates: list[AttachmentTemplate],
    **overrides,
) -> list[AttachmentDocument]:
    """Build a new attachment list, reusing matching stored attachments.

    A template matches a stored attachment with the same Drive file, share
    mode and edit setting; the stored one keeps its id and link caches and
    takes the template's display fields. Anything else becomes a new
    attachment.
    """
    merged = []
    for template in templates:
        values = {**template.model_dump(), **overrides}
        match = next(
            (
                attachment
                for attachment in existing
                if attachment.google_file_id == values["google_file_id"]
                and attachment.share_mode == values["share_mode"]
                and attachment.others_can_edit == values["others_can_edit"]
            ),
            None,
        )
        if match is None:
            merged.append(new_attachment(template, **overrides))
        else:
            merged.append(match.model_copy(update={
                "title": template.title,
                "thumbnail": template.thumbnail,
                "mime_type": template.mime_type,
            }))
    return merged


def newly_added(
    existing: list[AttachmentDocument] | None,
    templates: list[AttachmentTemplate] | None,
) -> list[AttachmentTemplate]:
    """Templates whose Drive file is not attached yet."""
    known = {attachment.google_file_id for attachment in existing or []}
    return [template for template in templates or [] if template.google_file_id not in known]


def merge_marking_criteria(
    existing: list[MarkingCriterion] | None,
    templates: list[MarkingCriterionTemplate],
) -> list[MarkingCriterion]:
    """Keep the ids of criteria the client sent back; new ids for the rest."""
    known = {criterion.id for criterion in existing or []}
    return [
        MarkingCriterion(
            id=template.id if template.id in known else new_id(),
            title=template.title,
            maximum_marks=template.maximum_marks,
        )
        for template in templates
    ]


def to_attachment_info(
    attachment: AttachmentDocument,
    owner_id: str,
    accessor_id: str,
) -> AttachmentInfo:
    return AttachmentInfo(
        **attachment.model_dump(include=set(AttachmentInfo.model_fields) - {"access_link"}),
        access_link=attachment.cached_link_for(owner_id, accessor_id),
    )
