"""
Transactional persistence of an edit.

All four relational steps run in one unit of work: delete removed image
rows, update the post row, insert promoted images, update changed kept
descriptions. Either all apply or none do. Storage mutations made before
this point are never undone here.
"""

from __future__ import annotations

import logging

from folio.core.entities import Post
from folio.core.errors import TransactionFailed

from .models import CommitPlan
from .ports import UnitOfWorkFactory

logger = logging.getLogger(__name__)


def commit_edit(plan: CommitPlan, *, uow_factory: UnitOfWorkFactory) -> Post:
    """
    Apply a CommitPlan atomically and return the post as persisted.

    Raises:
        TransactionFailed: If any step fails; the database is rolled back.
    """
    post = plan.post
    try:
        with uow_factory() as uow:
            deleted = uow.images.delete_many(post.id, plan.delete_ids)
            uow.posts.update(post)
            uow.images.insert_many(plan.inserts)
            for image_id, description in plan.description_updates:
                uow.images.update_description(image_id, description, post.updated_at)
            uow.commit()
    except Exception as e:
        raise TransactionFailed(post.id, str(e)) from e

    logger.debug(
        "Committed post %s: %d image rows deleted, %d inserted, %d descriptions updated",
        post.id,
        deleted,
        len(plan.inserts),
        len(plan.description_updates),
    )
    return post.model_copy(update={"images": [*plan.kept, *plan.inserts]})
