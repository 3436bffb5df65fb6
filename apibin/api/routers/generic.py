"""
apibin router module generic functionalities
"""

from fastapi import APIRouter, Depends

from .. import base
from ..dependency import MinimalRequestData
from ... import schemas


router = APIRouter(tags=["Generic"])


@router.get("/health", response_model=schemas.Health)
def verify_running_backend(local: MinimalRequestData = Depends(MinimalRequestData)):
    """
    Return some information about the books store to verify that the service works
    """

    return schemas.Health(
        startup=int(base.startup),
        books=len(local.store),
        max_books=local.store.max_size,
        background_tasks=local.request.app.state.refresher.running
    )
