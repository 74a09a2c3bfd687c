from fastapi import APIRouter, Depends, HTTPException

from heirlooms.dependencies import get_artifact_repository
from heirlooms.infra.artifact_db import ArtifactRepository
from heirlooms.models.artifact import MediaItem
from heirlooms.schemas import ArtifactView

router = APIRouter(prefix="/artifacts", tags=["artifacts"])


@router.get("/{slug}", response_model=ArtifactView)
def get_artifact(slug: str, repo: ArtifactRepository = Depends(get_artifact_repository)):
    """
    Artifact by slug, read from the JSON mirror with the columns as fallback.
    """
    row = repo.get_by_slug(slug)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Artifact {slug!r} not found.")

    data = row.get("data") or {}
    media = []
    for item in data.get("media") or []:
        if isinstance(item, dict) and item.get("type") in ("image", "audio") and item.get("src"):
            media.append(MediaItem(type=item["type"], src=item["src"], alt=item.get("alt")))

    return ArtifactView(
        slug=row.get("slug") or slug,
        title=data.get("title") or row.get("title") or "(untitled)",
        summary=data.get("summary") or row.get("summary") or "",
        media=media,
        transcript=data.get("transcript"),
        collection_id=data.get("collection_id"),
    )
